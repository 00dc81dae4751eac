"""Configuration for trade notification sinks."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..errors import FieldError


class SinkMethod(Enum):
    """Supported sink types."""
    HTTP_POST = "http_post"
    STDOUT = "stdout"
    MEMORY = "memory"


@dataclass(frozen=True)
class HttpSinkConfig:
    """Configuration for webhook delivery."""
    url: str
    method: str = "POST"
    headers: Optional[dict[str, str]] = None
    timeout_seconds: Optional[float] = None  # Falls back to fanout.send_timeout_seconds


@dataclass(frozen=True)
class StdoutSinkConfig:
    """Configuration for stdout delivery."""
    format: str = "json"  # json, pretty
    include_timestamp: bool = True


@dataclass(frozen=True)
class MemorySinkConfig:
    """Configuration for in-process delivery."""
    max_events: Optional[int] = None  # Keep only the newest events when set


@dataclass(frozen=True)
class SinkDestination:
    """A subscriber declared in configuration."""
    name: str
    method: SinkMethod
    config: Any  # HttpSinkConfig | StdoutSinkConfig | MemorySinkConfig
    enabled: bool = True
    symbols_filter: Optional[frozenset[str]] = None  # Only deliver these symbols


_CONFIG_TYPES = {
    SinkMethod.HTTP_POST: HttpSinkConfig,
    SinkMethod.STDOUT: StdoutSinkConfig,
    SinkMethod.MEMORY: MemorySinkConfig,
}


def parse_sink_destinations(entries: Optional[list[dict[str, Any]]]) -> tuple[list[SinkDestination], list[FieldError]]:
    """
    Build sink destinations from the ``sinks`` list of a config file.

    Returns:
        Tuple of (destinations, errors); invalid entries are skipped
    """
    destinations: list[SinkDestination] = []
    errors: list[FieldError] = []

    for index, entry in enumerate(entries or []):
        field = f"sinks[{index}]"
        if not isinstance(entry, dict):
            errors.append(FieldError(field, "Must be a mapping", entry))
            continue

        name = entry.get("name")
        if not isinstance(name, str) or not name:
            errors.append(FieldError(f"{field}.name", "Must be a non-empty string", name))
            continue

        try:
            method = SinkMethod(entry.get("method"))
        except ValueError:
            errors.append(FieldError(f"{field}.method", "Unknown sink method", entry.get("method")))
            continue

        options = entry.get("config") or {}
        try:
            config = _CONFIG_TYPES[method](**options)
        except TypeError as e:
            errors.append(FieldError(f"{field}.config", str(e), options))
            continue

        symbols = entry.get("symbols")
        destinations.append(SinkDestination(
            name=name,
            method=method,
            config=config,
            enabled=bool(entry.get("enabled", True)),
            symbols_filter=frozenset(symbols) if symbols else None,
        ))

    return destinations, errors


def create_http_destination(
    name: str,
    url: str,
    headers: Optional[dict[str, str]] = None,
    enabled: bool = True,
    **kwargs
) -> SinkDestination:
    """Create webhook sink destination."""
    return SinkDestination(
        name=name,
        method=SinkMethod.HTTP_POST,
        config=HttpSinkConfig(
            url=url,
            headers=headers or {},
            **kwargs
        ),
        enabled=enabled
    )
