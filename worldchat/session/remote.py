"""Gateway client used by the chat session."""

import json
from typing import Any, Dict, List, Optional, Protocol

import httpx

from ..config import get_settings
from ..logging_config import get_logger
from ..models.settings import AiSettings, UserSettings
from ..models.world import WorldSettings
from .models import UserSession

logger = get_logger(__name__)


class RemoteError(Exception):
    """Any failed round trip to the gateway."""

    TRANSPORT = "transport"
    STATUS = "status"
    EMPTY = "empty"
    INVALID_JSON = "invalid_json"
    REJECTED = "rejected"  # well-formed {"ok": false} payload

    def __init__(self, kind: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code


class ChatRemote(Protocol):
    """What the chat session needs from the remote side."""

    async def send_turn(
        self,
        session: UserSession,
        text: str,
        history: List[Dict[str, str]],
        settings: Optional[AiSettings] = None,
        context_id: Optional[str] = None,
    ) -> Dict[str, Any]: ...

    async def fetch_initial_history(self, session: UserSession, context_id: Optional[str] = None) -> Dict[str, Any]: ...

    async def fetch_older_history(
        self, session: UserSession, context_id: str, continuation_token: str
    ) -> Dict[str, Any]: ...

    async def delete_turn(self, session: UserSession, context_id: Optional[str], remote_id: str) -> bool: ...


class GatewayClient:
    """httpx client for the World Chat gateway's REST routes."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        page_size: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.page_size = page_size or settings.history_page_size
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.gateway_base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=body, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {type(e).__name__}")
            raise RemoteError(RemoteError.TRANSPORT, f"Could not reach gateway: {e}") from e

        if response.is_error:
            raise RemoteError(
                RemoteError.STATUS,
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        text = response.text
        if not text.strip():
            raise RemoteError(RemoteError.EMPTY, "Empty response body", status_code=response.status_code)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RemoteError(RemoteError.INVALID_JSON, "Response body is not JSON", response.status_code) from e

        if isinstance(data, list):
            return {"ok": True, "items": data}
        if not isinstance(data, dict):
            raise RemoteError(RemoteError.INVALID_JSON, "Response body is not a JSON object", response.status_code)
        if data.get("ok") is False:
            raise RemoteError(
                RemoteError.REJECTED,
                str(data.get("error") or data.get("message") or "Request rejected"),
                response.status_code,
            )
        return data

    # Chat turns and history

    async def send_turn(
        self,
        session: UserSession,
        text: str,
        history: List[Dict[str, str]],
        settings: Optional[AiSettings] = None,
        context_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": text, "email": session.email, "history": history}
        if settings is not None:
            body["settings"] = settings.to_wire()
        if context_id is not None:
            body["worldId"] = context_id
        return await self._request("POST", "/api/chat", body=body)

    async def fetch_initial_history(self, session: UserSession, context_id: Optional[str] = None) -> Dict[str, Any]:
        if context_id is None:
            return await self._request("GET", "/api/chat/history", params={"email": session.email})
        return await self._request(
            "GET",
            f"/api/worlds/{context_id}/history",
            params={"email": session.email, "pageSize": self.page_size},
        )

    async def fetch_older_history(
        self, session: UserSession, context_id: str, continuation_token: str
    ) -> Dict[str, Any]:
        return await self._request(
            "GET",
            f"/api/worlds/{context_id}/history",
            params={
                "email": session.email,
                "pageSize": self.page_size,
                "continuationToken": continuation_token,
            },
        )

    async def delete_turn(self, session: UserSession, context_id: Optional[str], remote_id: str) -> bool:
        if context_id is None:
            path = f"/api/chat/history/{remote_id}"
        else:
            path = f"/api/worlds/{context_id}/history/{remote_id}"
        data = await self._request("DELETE", path, params={"email": session.email})
        return bool(data.get("ok", True))

    # User settings

    async def get_user_settings(self, session: UserSession) -> Dict[str, Any]:
        return await self._request("POST", "/api/settings/get", body={"email": session.email})

    async def save_user_settings(self, session: UserSession, settings: UserSettings) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/api/settings/save",
            body={"email": session.email, "settings": settings.to_wire()},
        )

    # Worlds

    async def list_worlds(self, session: UserSession) -> Dict[str, Any]:
        return await self._request("GET", "/api/worlds", params={"email": session.email})

    async def create_world(self, session: UserSession, world: WorldSettings) -> Dict[str, Any]:
        return await self._request("POST", "/api/worlds", body={"email": session.email, "world": world.to_wire()})

    async def update_world(self, session: UserSession, world_id: str, world: WorldSettings) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            f"/api/worlds/{world_id}",
            body={"email": session.email, "world": world.to_wire()},
        )

    async def delete_world(self, session: UserSession, world_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/worlds/{world_id}", params={"email": session.email})
