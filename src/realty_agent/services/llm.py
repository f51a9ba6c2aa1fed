from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from realty_agent.config import Settings


logger = logging.getLogger(__name__)


@dataclass
class ModelResponse:
    text: str


class ModelClient:
    def complete(self, prompt: str) -> ModelResponse:
        raise NotImplementedError


class ChatCompletionClient(ModelClient):
    """OpenAI-compatible chat completion client (OpenAI, OpenRouter, local gateways)."""

    def __init__(self, api_key: str, model: str = "gpt-4o", base_url: str = "https://api.openai.com/v1",
                 timeout: float = 120.0) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def complete(self, prompt: str) -> ModelResponse:
        resp = requests.post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": 0,
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        return ModelResponse(text=data["choices"][0]["message"]["content"] or "")


def get_model_client(settings: Optional[Settings] = None) -> Optional[ModelClient]:
    """Return the configured model client, or None when no API key is set."""
    cfg = settings or Settings.from_env()
    if not cfg.openai_api_key:
        logger.info("Model extraction disabled: no OPENAI_API_KEY")
        return None
    return ChatCompletionClient(cfg.openai_api_key, model=cfg.llm_model, base_url=cfg.openai_base_url)
