from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class Settings:
    """Runtime settings, read from the environment when instantiated."""

    apify_token: Optional[str] = None
    apify_base_url: str = "https://api.apify.com"
    actor_run_id: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o"
    redis_url: Optional[str] = None
    db_url: Optional[str] = None
    store_namespace: str = "real-estate-monitors"
    user_agent: str = DEFAULT_USER_AGENT
    render_timeout_secs: float = 60.0
    selector_timeout_secs: float = 10.0
    model_text_limit: int = 12000
    monitor_max_results: int = 20
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        return cls(
            apify_token=env.get("APIFY_TOKEN") or None,
            apify_base_url=env.get("APIFY_BASE_URL", cls.apify_base_url),
            actor_run_id=env.get("ACTOR_RUN_ID") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_base_url=env.get("OPENAI_BASE_URL", cls.openai_base_url),
            llm_model=env.get("LLM_MODEL", cls.llm_model),
            redis_url=env.get("REDIS_URL") or None,
            db_url=env.get("DB_URL") or None,
            store_namespace=env.get("MONITOR_STORE_NAMESPACE", cls.store_namespace),
            user_agent=env.get("HTTP_USER_AGENT", cls.user_agent),
            render_timeout_secs=_float(env.get("RENDER_TIMEOUT_SECS"), cls.render_timeout_secs),
            selector_timeout_secs=_float(env.get("SELECTOR_TIMEOUT_SECS"), cls.selector_timeout_secs),
            model_text_limit=_int(env.get("MODEL_TEXT_LIMIT"), cls.model_text_limit),
            monitor_max_results=_int(env.get("MONITOR_MAX_RESULTS"), cls.monitor_max_results),
            log_level=env.get("LOG_LEVEL", cls.log_level),
        )


def _float(raw: Optional[str], default: float) -> float:
    try:
        return float(raw) if raw not in (None, "") else default
    except ValueError:
        return default


def _int(raw: Optional[str], default: int) -> int:
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        return default
