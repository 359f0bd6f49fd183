"""HTTP client for the Anthropic Messages API.

The tool loop only needs ``create_message``; anything implementing the
``AssistantClient`` protocol (a fake in tests, another vendor) can stand in.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import requests
import urllib3

from longway.config import AssistantConfig, get_assistant_config
from longway.errors import AssistantServiceError

logger = logging.getLogger(__name__)


class AssistantClient(Protocol):
    def create_message(
        self,
        system: str,
        tools: list[dict[str, Any]],
        messages: list[dict[str, Any]],
    ) -> dict[str, Any]:
        ...


class AnthropicClient:
    """Minimal Messages API client over ``requests``."""

    def __init__(
        self,
        api_key: str,
        config: Optional[AssistantConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.config = config or get_assistant_config()
        self.session = session or self._build_session()

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(
            max_retries=urllib3.util.Retry(
                total=2, backoff_factor=0.3,
                status_forcelist=[502, 503, 504],
                allowed_methods=frozenset({"POST"}),
            ),
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def create_message(
        self,
        system: str,
        tools: list[dict[str, Any]],
        messages: list[dict[str, Any]],
    ) -> dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}/messages"
        payload = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "system": system,
            "tools": tools,
            "messages": messages,
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": self.config.api_version,
            "content-type": "application/json",
        }

        try:
            resp = self.session.post(url, json=payload, headers=headers, timeout=self.config.timeout)
        except requests.Timeout as e:
            raise AssistantServiceError(f"Timeout after {self.config.timeout}s", status=504) from e
        except requests.RequestException as e:
            raise AssistantServiceError(f"Assistant service unreachable: {e}", status=502) from e

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.error("Messages API returned %s: %s", resp.status_code, message)
            raise AssistantServiceError(message, status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise AssistantServiceError("Malformed response from assistant service", status=502) from e
        if not isinstance(data, dict) or not isinstance(data.get("content"), list):
            raise AssistantServiceError("Malformed response from assistant service", status=502)
        return data


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason or "Request failed"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return resp.reason or "Request failed"
