from __future__ import annotations

import pytest

from realty_agent.errors import RenderError
from realty_agent.services.billing import LoggingChargeSink

from fakes import FakeHttp, FakeRenderer


@pytest.fixture
def charges() -> LoggingChargeSink:
    return LoggingChargeSink()


@pytest.fixture
def failing_renderer() -> FakeRenderer:
    return FakeRenderer(error=RenderError("No content was loaded from the page"))


@pytest.fixture
def failing_http() -> FakeHttp:
    return FakeHttp(error=ConnectionError("403 Forbidden"))
