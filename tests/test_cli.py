from __future__ import annotations

import json

import pytest

import realty_agent.cli.main as cli
from realty_agent.models import ExtractionResult

from fakes import FakeOrchestrator, listing


@pytest.fixture(autouse=True)
def plain_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APIFY_TOKEN", "ACTOR_RUN_ID", "OPENAI_API_KEY", "REDIS_URL", "DB_URL"):
        monkeypatch.delenv(name, raising=False)


def test_search_prints_result(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    orchestrator = FakeOrchestrator({"Austin, TX": [ExtractionResult(listings=[listing("a1")])]})
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, charges=None: orchestrator)

    code = cli.main(["search", "--location", "Austin, TX", "--max-price", "500000", "--force-fallback"])

    assert code == 0
    assert json.loads(capsys.readouterr().out)["count"] == 1
    criteria = orchestrator.calls[0]
    assert criteria.force_fallback is True
    assert criteria.max_price == 500000


def test_invalid_criteria_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, charges=None: FakeOrchestrator({}))

    assert cli.main(["search", "--location", "Austin, TX", "--min-price", "9", "--max-price", "1"]) == 2


def test_unknown_monitor_exit_code(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, charges=None: FakeOrchestrator({}))

    assert cli.main(["check-monitor", "missing"]) == 1


def test_run_monitors_with_empty_store(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "build_orchestrator", lambda settings, charges=None: FakeOrchestrator({}))

    assert cli.main(["run-monitors"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["status"] == "success"
    assert out["processedCount"] == 0


def test_monitor_actions_do_not_build_pipeline(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def no_pipeline(settings, charges=None):
        raise AssertionError("extraction pipeline built for an action that does not search")

    monkeypatch.setattr(cli, "build_orchestrator", no_pipeline)

    assert cli.main(["monitor", "--location", "Austin, TX", "--monitor-id", "austin"]) == 0
    assert json.loads(capsys.readouterr().out)["monitor"]["id"] == "austin"
    assert cli.main(["check-monitor", "austin"]) == 1
