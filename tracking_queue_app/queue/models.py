"""
Data models for queued request sets.

The tracker stores each request set as a JSON document in one of the shard
lists. ``RequestSetState`` mirrors that stored shape and is validated
strictly; ``RequestSet`` and ``Request`` are the decoded, read-only view the
analyzer works with.
"""

import hashlib
import json
import string
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tracking_queue_app.exceptions import DecodeError, InvalidVisitorId

VISITOR_ID_HEX_LENGTH = 16

_HEX_DIGITS = frozenset(string.hexdigits)


class RequestSetState(BaseModel):
    """
    Stored form of a request set, as written by the tracker.

    Each entry of ``requests`` is the raw tracking parameter mapping of one
    request. The client address lives in the captured server environment.
    """

    requests: List[Dict[str, Any]] = Field(..., description="Raw parameters of each request")
    env: Dict[str, Any] = Field(default_factory=dict, description="Captured server environment")
    token_auth: Optional[str] = Field(None, alias="tokenAuth", description="Token sent with the bulk request")
    time: Optional[float] = Field(None, description="Unix time the set was queued")

    model_config = ConfigDict(
        strict=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "requests": [
                    {"idsite": "1", "rec": "1", "_id": "5a2f0c1d9e8b7a6f", "url": "https://example.org/"}
                ],
                "env": {"server": {"REMOTE_ADDR": "192.168.1.1"}},
                "tokenAuth": None,
                "time": 1730197800.0,
            }
        },
    )

    def client_ip(self) -> str:
        server = self.env.get("server")
        if isinstance(server, dict):
            return str(server.get("REMOTE_ADDR") or "")
        return ""


class Request(BaseModel):
    """One tracking request inside a request set."""

    params: Dict[str, Any] = Field(default_factory=dict)
    client_ip: str = ""

    model_config = ConfigDict(frozen=True)

    def get_param(self, name: str, default: str = "") -> str:
        value = self.params.get(name)
        if value is None or isinstance(value, (dict, list)):
            return default
        return str(value)

    def get_forced_user_id(self) -> Optional[str]:
        return self.get_param("uid") or None

    def get_forced_visitor_id(self) -> Optional[str]:
        return self.get_param("cid") or None

    def get_ip_string(self) -> str:
        """IP the request is attributed to, ``cip`` overrides the sender"""
        return self.get_param("cip") or self.client_ip

    def get_visitor_id(self) -> Optional[bytes]:
        """
        Resolve the visitor id of this request as raw bytes.

        Precedence:
        1. ``uid`` (forced user id): first 16 hex chars of its SHA1
        2. ``cid`` (forced visitor id): must be exactly 16 hex chars
        3. ``_id`` (first party cookie id): used once it has 16+ chars

        Returns:
            8 raw bytes, or None when the request carries no visitor id

        Raises:
            InvalidVisitorId: if ``cid`` or ``_id`` is not valid hex
        """
        user_id = self.get_forced_user_id()
        if user_id:
            hashed = hashlib.sha1(user_id.encode("utf-8")).hexdigest()
            return bytes.fromhex(hashed[:VISITOR_ID_HEX_LENGTH])

        forced = self.get_forced_visitor_id()
        if forced:
            if len(forced) != VISITOR_ID_HEX_LENGTH or not _is_hex(forced):
                raise InvalidVisitorId(f"cid must be {VISITOR_ID_HEX_LENGTH} hex characters, got {forced!r}")
            return bytes.fromhex(forced)

        cookie_id = self.get_param("_id")
        if len(cookie_id) >= VISITOR_ID_HEX_LENGTH:
            cookie_id = cookie_id[:VISITOR_ID_HEX_LENGTH]
            if not _is_hex(cookie_id):
                raise InvalidVisitorId(f"_id must be hexadecimal, got {cookie_id!r}")
            return bytes.fromhex(cookie_id)

        return None


class RequestSet(BaseModel):
    """A decoded queue item: one or more requests sent together."""

    requests: Tuple[Request, ...] = ()
    time: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_state(cls, state: RequestSetState) -> "RequestSet":
        client_ip = state.client_ip()
        requests = tuple(Request(params=params, client_ip=client_ip) for params in state.requests)
        return cls(requests=requests, time=state.time)

    @classmethod
    def decode(cls, raw) -> "RequestSet":
        """
        Decode a raw stored queue item.

        Args:
            raw: Item as read from the backend (bytes or str)

        Raises:
            DecodeError: if the item is not UTF-8, not JSON, or not a request set
        """
        try:
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            state = RequestSetState.model_validate(json.loads(raw))
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError, TypeError) as e:
            raise DecodeError(f"Malformed request set: {e}") from e
        return cls.from_state(state)

    def get_number_of_requests(self) -> int:
        return len(self.requests)

    def get_requests(self) -> Tuple[Request, ...]:
        return self.requests


def _is_hex(value: str) -> bool:
    return bool(value) and all(char in _HEX_DIGITS for char in value)
