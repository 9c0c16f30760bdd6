"""Extraction of request context used by conditional permissions."""

from __future__ import annotations

import ipaddress
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .errors import ContextExtractionError

Context = dict[str, str]
Condition = Callable[[Mapping[str, str]], bool]
RequestExtractor = Callable[["JsonRpcRequest"], Optional[str]]

_DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


@dataclass
class JsonRpcRequest:
    """A JSON-RPC request as seen by the access-control layer."""

    method: str
    params: Optional[Any] = None
    id: Optional[Union[int, str]] = None
    jsonrpc: str = "2.0"


def _default_ip_ranges() -> dict[str, str]:
    return {
        "192.168.0.0/16": "high",
        "10.0.0.0/8": "high",
        "172.16.0.0/12": "medium",
    }


@dataclass
class TrustLevelConfig:
    """Maps client IP ranges to trust levels."""

    ip_ranges: dict[str, str] = field(default_factory=_default_ip_ranges)
    default_trust_level: str = "low"
    strict_mode: bool = False

    def get_trust_level(self, ip: str) -> Optional[str]:
        """Trust level of the first range containing ``ip``, else the default."""
        try:
            address = ipaddress.ip_address(ip)
        except ValueError:
            return self.default_trust_level
        for cidr, level in self.ip_ranges.items():
            if _ip_in_range(address, cidr):
                return level
        return self.default_trust_level


def _ip_in_range(address: Any, cidr: str) -> bool:
    network_text, slash, prefix_text = cidr.partition("/")
    if not slash:
        try:
            return address == ipaddress.ip_address(cidr)
        except ValueError:
            return False
    try:
        network = ipaddress.ip_address(network_text)
    except ValueError:
        return False
    if not prefix_text.isdigit() or int(prefix_text) > 255:
        return False
    prefix = int(prefix_text)
    if not (
        isinstance(address, ipaddress.IPv4Address)
        and isinstance(network, ipaddress.IPv4Address)
    ):
        return False
    if prefix > 32:
        return False
    mask = (0xFFFFFFFF << (32 - prefix)) & 0xFFFFFFFF
    return (int(address) & mask) == (int(network) & mask)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _auth_of(request: JsonRpcRequest) -> Optional[dict[str, Any]]:
    params = request.params
    if not isinstance(params, dict):
        return None
    auth = params.get("auth")
    return auth if isinstance(auth, dict) else None


def _scalar_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class ContextExtractor(ABC):
    """Produces a string-to-string context for a request."""

    @abstractmethod
    async def extract_context(self, request: JsonRpcRequest) -> Context:
        """Return the context for ``request``."""


@dataclass
class DefaultContextExtractor(ContextExtractor):
    """Adds time information, request-supplied context and auth fields."""

    clock: Callable[[], datetime] = _utc_now

    async def extract_context(self, request: JsonRpcRequest) -> Context:
        now = self.clock()
        hour = now.hour
        context: Context = {
            "timestamp": now.isoformat(),
            "date": now.strftime("%Y-%m-%d"),
            "time": now.strftime("%H:%M:%S"),
            "business_hours": _scalar_text(9 <= hour <= 17),
            "day_of_week": _DAY_NAMES[now.weekday()],
            "is_weekend": _scalar_text(hour in (0, 6)),
        }

        params = request.params
        if isinstance(params, dict):
            if "context" in params:
                context.update(self._flatten(params["context"]))
            auth = params.get("auth")
            if isinstance(auth, dict):
                for key in ("user_id", "session_id", "client_ip"):
                    value = auth.get(key)
                    if isinstance(value, str):
                        context[key] = value

        context["method"] = request.method
        return context

    @staticmethod
    def _flatten(value: Any) -> Context:
        if not isinstance(value, dict):
            raise ContextExtractionError("Context must be a JSON object")
        return {key: _scalar_text(item) for key, item in value.items()}


class ExtendedContextExtractor(ContextExtractor):
    """Default context plus values computed by custom extractors."""

    def __init__(self) -> None:
        self._base = DefaultContextExtractor()
        self._custom: dict[str, RequestExtractor] = {}

    def with_custom_extractor(
        self, key: str, extractor: RequestExtractor
    ) -> ExtendedContextExtractor:
        """Compute ``key`` with ``extractor``; a ``None`` result adds nothing."""
        self._custom[key] = extractor
        return self

    def with_trust_level_extractor(self) -> ExtendedContextExtractor:
        """Add ``trust_level`` using the default IP ranges."""
        return self.with_configurable_trust_level_extractor(TrustLevelConfig())

    def with_configurable_trust_level_extractor(
        self, config: TrustLevelConfig
    ) -> ExtendedContextExtractor:
        """Add ``trust_level`` derived from the client IP using ``config``."""

        def trust_level(request: JsonRpcRequest) -> Optional[str]:
            ip = _client_ip(request)
            if ip is not None:
                return config.get_trust_level(ip)
            return config.default_trust_level

        return self.with_custom_extractor("trust_level", trust_level)

    def with_location_extractor(self) -> ExtendedContextExtractor:
        """Add a coarse ``location`` classification of the client IP."""

        def location(request: JsonRpcRequest) -> Optional[str]:
            ip = _client_ip(request)
            if ip is None:
                return "unknown"
            if ip.startswith(("192.168.", "10.", "127.")):
                return "local"
            if ip.startswith(("8.8.", "1.1.")):
                return "public-dns"
            return "external"

        return self.with_custom_extractor("location", location)

    async def extract_context(self, request: JsonRpcRequest) -> Context:
        try:
            context = await self._base.extract_context(request)
        except ContextExtractionError as exc:
            raise ContextExtractionError(str(exc)) from exc
        for key, extractor in self._custom.items():
            value = extractor(request)
            if value is not None:
                context[key] = value
        return context


def _client_ip(request: JsonRpcRequest) -> Optional[str]:
    auth = _auth_of(request)
    if auth is None:
        return None
    ip = auth.get("client_ip")
    return ip if isinstance(ip, str) else None


def business_hours_only() -> Condition:
    """True when the context marks business hours."""
    return lambda context: context.get("business_hours") == "true"


def high_trust_only() -> Condition:
    """True when the client has a high trust level."""
    return lambda context: context.get("trust_level") == "high"


def weekdays_only() -> Condition:
    """True unless the context marks a weekend."""
    return lambda context: context.get("is_weekend", "false") == "false"


def user_only(user_id: str) -> Condition:
    """True when the context names the given user."""
    return lambda context: context.get("user_id") == user_id


def all_of(conditions: Iterable[Condition]) -> Condition:
    """True when every condition holds."""
    checks = list(conditions)
    return lambda context: all(check(context) for check in checks)


def any_of(conditions: Iterable[Condition]) -> Condition:
    """True when at least one condition holds."""
    checks = list(conditions)
    return lambda context: any(check(context) for check in checks)