"""Adapter for the payload shapes the AI backend has produced over time.

The backend is inconsistent about casing and key names. Everything that
reads a remote payload goes through this module so that the rest of the
session code only sees ``ChatTurn``, ``HistoryPage``, ``UserSettings`` and
``World`` instances.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, TypedDict, Union

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ..logging_config import get_logger
from ..models.settings import UserSettings
from ..models.world import World
from .models import ChatTurn, HistoryPage, local_turn_id, utc_now

logger = get_logger(__name__)

NO_REPLY_TEXT = "No reply received"


class ExchangeRecordCamel(TypedDict, total=False):
    """History record as written by the current chat function."""
    id: str
    input: str
    aiReply: str
    createdUtc: str


class ExchangeRecordPascal(TypedDict, total=False):
    """History record as returned by the table-storage listing."""
    Id: str
    RowKey: str
    Text: str
    Input: str
    AiReply: str
    CreatedUtc: str


class ExchangeRecordLegacy(TypedDict, total=False):
    """Older chat function output: ``text`` plus an ``ai`` object or string."""
    rowKey: str
    text: str
    ai: Union[str, Dict[str, Any]]
    timestamp: Union[str, int, float]


class FlatTurnRecord(TypedDict, total=False):
    """Record that is already a single turn."""
    id: str
    role: str
    content: str
    timestamp: Union[str, int, float]


RemoteTurn = Union[ExchangeRecordCamel, ExchangeRecordPascal, ExchangeRecordLegacy, FlatTurnRecord]

OLDEST_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)

_ID_KEYS = ("id", "Id", "ID", "rowKey", "RowKey", "messageId", "MessageId")
_USER_KEYS = ("input", "Input", "text", "Text", "message", "Message")
_REPLY_KEYS = ("aiReply", "AiReply", "ai", "Ai", "reply", "Reply")
_TIME_KEYS = ("createdUtc", "CreatedUtc", "timestamp", "Timestamp", "createdAt", "CreatedAt")
_ITEM_KEYS = ("items", "Items", "history", "History", "messages", "Messages")
_TOKEN_KEYS = ("continuationToken", "ContinuationToken", "nextToken", "NextToken")
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")
_SETTINGS_WIRE_KEYS = {to_camel(name) for name in UserSettings.model_fields}


def _first(record: Mapping[str, Any], keys) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_timestamp(value: Any, fallback: Optional[datetime] = None) -> datetime:
    """Parse a remote timestamp; naive values are UTC.

    Missing or unusable values become `fallback`, or the current time when
    no fallback is given.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e11 else value  # milliseconds
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Out of range timestamp {value!r}, using fallback")
            return fallback or utc_now()
    elif isinstance(value, str) and value.strip():
        text = value.strip().replace("Z", "+00:00")
        # .NET writes seven fractional digits
        text = _EXTRA_FRACTION.sub(r"\1", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp {value!r}, using fallback")
            return fallback or utc_now()
    else:
        return fallback or utc_now()

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _reply_text(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        value = _first(value, ("reply", "Reply", "text", "content"))
    if value is None:
        return None
    return str(value)


def normalize_remote_turn(record: Mapping[str, Any], fallback: Optional[datetime] = None) -> List[ChatTurn]:
    """Turn one history record into display turns.

    An exchange record yields the user turn followed by the assistant turn,
    both carrying the record's durable id. A flat record yields one turn.
    """

    remote_id = _first(record, _ID_KEYS)
    remote_id = str(remote_id) if remote_id is not None else None
    timestamp = parse_timestamp(_first(record, _TIME_KEYS), fallback)

    role = record.get("role") or record.get("Role")
    if role in ("user", "assistant") and "content" in record:
        return [ChatTurn(
            id=remote_id or local_turn_id(),
            role=role,
            content=str(record.get("content") or ""),
            timestamp=timestamp,
            remote_id=remote_id,
        )]

    turns: List[ChatTurn] = []
    user_text = _first(record, _USER_KEYS)
    reply = _reply_text(_first(record, _REPLY_KEYS))

    if user_text is not None:
        turns.append(ChatTurn(
            id=f"{remote_id}-user" if remote_id else local_turn_id(),
            role="user",
            content=str(user_text),
            timestamp=timestamp,
            remote_id=remote_id,
        ))
    if reply is not None:
        turns.append(ChatTurn(
            id=f"{remote_id}-ai" if remote_id else local_turn_id(),
            role="assistant",
            content=reply,
            timestamp=timestamp,
            remote_id=remote_id,
        ))
    return turns


def normalize_history_page(payload: Union[Mapping[str, Any], List[Any], None]) -> HistoryPage:
    """Normalize a history response into turns plus continuation token."""

    if payload is None:
        return HistoryPage()
    if isinstance(payload, list):
        items, token = payload, None
    else:
        items = _first(payload, _ITEM_KEYS) or []
        token = _first(payload, _TOKEN_KEYS)

    turns: List[ChatTurn] = []
    for position, item in enumerate(items):
        if not isinstance(item, Mapping):
            logger.debug(f"Skipping non-object history item of type {type(item).__name__}")
            continue
        # Undated records sort before everything dated, in page order
        fallback = OLDEST_TIMESTAMP + timedelta(microseconds=position)
        turns.extend(normalize_remote_turn(item, fallback))

    return HistoryPage(turns=turns, continuation_token=str(token) if token else None)


def extract_reply(payload: Mapping[str, Any]) -> str:
    """Reply text of a chat response, or the fixed fallback."""
    ai = payload.get("ai")
    if isinstance(ai, Mapping) and ai.get("reply"):
        return str(ai["reply"])
    for key in ("reply", "aiReply", "Reply"):
        if payload.get(key):
            return str(payload[key])
    if isinstance(ai, str) and ai:
        return ai
    return NO_REPLY_TEXT


def _camel_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """PascalCase → camelCase, keeping camelCase keys when both are present."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        camel = key[:1].lower() + key[1:] if key else key
        if camel not in result or key == camel:
            result[camel] = value
    return result


def normalize_user_settings(data: Optional[Mapping[str, Any]]) -> UserSettings:
    """Build ``UserSettings`` from either casing; missing keys take defaults."""
    if not data:
        return UserSettings()
    cleaned = {
        k: v for k, v in _camel_keys(data).items()
        if v is not None and k in _SETTINGS_WIRE_KEYS
    }
    try:
        return UserSettings.model_validate(cleaned)
    except ValidationError as e:
        # Keep the valid fields, default the rest
        bad = {err["loc"][0] for err in e.errors() if err.get("loc")}
        logger.warning(f"Ignoring invalid settings fields from remote: {sorted(bad)}")
        return UserSettings.model_validate({k: v for k, v in cleaned.items() if k not in bad})


def normalize_world(data: Mapping[str, Any]) -> Optional[World]:
    """Build a ``World`` from either casing; invalid records are skipped."""
    cleaned = {k: v for k, v in _camel_keys(data).items() if v is not None}
    if "id" not in cleaned and "rowKey" in cleaned:
        cleaned["id"] = cleaned["rowKey"]
    if "id" in cleaned:
        cleaned["id"] = str(cleaned["id"])
    try:
        return World.model_validate(cleaned)
    except ValidationError as e:
        logger.warning(f"Skipping malformed world record: {e.error_count()} errors")
        return None


def normalize_worlds(payload: Mapping[str, Any]) -> List[World]:
    records = _first(payload, ("worlds", "Worlds", "items", "Items")) or []
    worlds = [normalize_world(r) for r in records if isinstance(r, Mapping)]
    return [w for w in worlds if w is not None]
