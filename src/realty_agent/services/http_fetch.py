from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

import requests


logger = logging.getLogger(__name__)


@dataclass
class FetchedPage:
    url: str
    html: str


class HttpClient:
    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> FetchedPage:
        raise NotImplementedError


class RequestsHttpClient(HttpClient):
    """Plain GET without script execution, for the last-resort tier."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def get(self, url: str, headers: Optional[Mapping[str, str]] = None) -> FetchedPage:
        logger.info("Fetching %s", url)
        resp = requests.get(url, headers=dict(headers or {}), timeout=self.timeout)
        resp.raise_for_status()
        return FetchedPage(url=str(resp.url), html=resp.text)
