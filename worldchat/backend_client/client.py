"""AI backend client used by the gateway routes."""

import json
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

import httpx

from ..config import get_settings
from ..logging_config import get_logger

logger = get_logger(__name__)


class BackendError(Exception):
    """Failure talking to the AI backend."""

    NOT_CONFIGURED = "not_configured"
    TRANSPORT = "transport"
    STATUS = "status"
    EMPTY = "empty"
    INVALID_JSON = "invalid_json"

    def __init__(self, kind: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


class BackendClient:
    """Forwards JSON payloads to AI backend functions.

    The function key travels as the ``code`` query parameter and the
    ``x-functions-key`` header. Request bodies and response contents are
    never logged, only status lines.
    """

    def __init__(
        self,
        function_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.function_key = function_key
        self.timeout = timeout
        self._transport = transport

    def _auth_parts(self) -> Tuple[Dict[str, str], Dict[str, str]]:
        params: Dict[str, str] = {}
        headers = {"Content-Type": "application/json"}
        if self.function_key:
            params["code"] = self.function_key
            headers["x-functions-key"] = self.function_key
        return params, headers

    async def call(
        self,
        url: Optional[str],
        payload: Dict[str, Any],
        *,
        setting_name: str,
        tag: str = "BACKEND",
    ) -> Dict[str, Any]:
        """POST ``payload`` to ``url`` and return the decoded JSON object."""

        if not url:
            raise BackendError(BackendError.NOT_CONFIGURED, f"{setting_name} not configured")

        params, headers = self._auth_parts()
        logger.info(f"[{tag}] Calling AI backend (payload in POST body, not logged)")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, params=params, headers=headers, json=payload)
            except httpx.HTTPError as e:
                logger.error(f"[{tag}] AI backend unreachable: {type(e).__name__}")
                raise BackendError(BackendError.TRANSPORT, "Failed to connect to AI backend") from e

        logger.info(f"[{tag}] AI backend responded with status: {response.status_code}")

        if response.is_error:
            raise BackendError(
                BackendError.STATUS,
                f"AI backend returned {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        text = response.text
        if not text.strip():
            logger.warning(f"[{tag}] Empty response from AI backend")
            raise BackendError(BackendError.EMPTY, "AI backend returned empty response")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"[{tag}] Failed to parse AI backend response (content not logged)")
            raise BackendError(BackendError.INVALID_JSON, "AI backend returned invalid JSON") from e

        # Some history functions answer with a bare list
        if isinstance(data, list):
            data = {"ok": True, "items": data}
        elif not isinstance(data, dict):
            raise BackendError(BackendError.INVALID_JSON, "AI backend returned invalid JSON")

        return data


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    """Get the shared backend client."""
    settings = get_settings()
    return BackendClient(function_key=settings.backend_function_key, timeout=settings.backend_timeout)
