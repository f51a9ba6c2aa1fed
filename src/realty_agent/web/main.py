from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from realty_agent.config import Settings
from realty_agent.errors import MonitorNotFound
from realty_agent.models import MonitorRequest, SearchCriteria
from realty_agent.repositories import KeyValueStore, get_store
from realty_agent.services.billing import ChargeSink, make_charge_sink
from realty_agent.services.monitor import MonitorEngine, describe_setup, format_status
from realty_agent.services.orchestrator import FallbackOrchestrator, build_orchestrator
from realty_agent.utils.log import configure_logging


logger = logging.getLogger(__name__)

app = FastAPI(title="Real Estate Listings")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_charges() -> ChargeSink:
    return make_charge_sink(get_settings())


@lru_cache(maxsize=1)
def get_orchestrator() -> FallbackOrchestrator:
    return build_orchestrator(get_settings(), charges=get_charges())


@lru_cache(maxsize=1)
def get_kv_store() -> KeyValueStore:
    return get_store(get_settings())


def get_engine(
    orchestrator: FallbackOrchestrator = Depends(get_orchestrator),
    store: KeyValueStore = Depends(get_kv_store),
    charges: ChargeSink = Depends(get_charges),
) -> MonitorEngine:
    return MonitorEngine(store, orchestrator, charges=charges, settings=get_settings())


@app.on_event("startup")
def on_startup() -> None:
    configure_logging(get_settings().log_level)


@app.post("/search")
def search(criteria: SearchCriteria, orchestrator: FallbackOrchestrator = Depends(get_orchestrator)) -> JSONResponse:
    result = orchestrator.extract(criteria)
    return JSONResponse(result.to_dict())


@app.post("/monitors", status_code=201)
def create_monitor(request: MonitorRequest, engine: MonitorEngine = Depends(get_engine)) -> JSONResponse:
    config = engine.create_monitor(request)
    return JSONResponse(
        {"monitor": config.to_store(), "message": describe_setup(config)},
        status_code=201,
    )


@app.get("/monitors/{monitor_id}")
def monitor_status(monitor_id: str, engine: MonitorEngine = Depends(get_engine)) -> JSONResponse:
    try:
        config = engine.get_status(monitor_id)
    except MonitorNotFound as e:
        return JSONResponse({"detail": e.message}, status_code=404)
    return JSONResponse({"monitor": config.to_store(), "status": format_status(config)})


@app.post("/monitors/run")
def run_monitors(engine: MonitorEngine = Depends(get_engine)) -> JSONResponse:
    outcome = engine.process_all_monitors()
    return JSONResponse(outcome.model_dump())
