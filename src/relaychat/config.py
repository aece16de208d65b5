"""Configuration for chat sessions."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

ENDPOINT_ENV_VAR = "RELAY_SERVER_URL"
DEFAULT_ENDPOINT = "http://localhost:5002"

DEFAULT_ROOM = "general"
DEFAULT_IDENTITY = "Anonymous"
DEFAULT_STORAGE_NAME = "chat-storage"

_ALLOWED_SCHEMES = frozenset({"http", "https", "ws", "wss"})
_URL = TypeAdapter(AnyUrl)


class ConfigError(ValueError):
    """Raised for invalid session configuration."""


def validate_endpoint(endpoint: str) -> str:
    """Check that ``endpoint`` is a usable relay address.

    Returns the endpoint unchanged.
    """
    try:
        url = _URL.validate_python(endpoint)
    except ValidationError as e:
        msg = f"Invalid relay endpoint {endpoint!r}"
        raise ConfigError(msg) from e

    if url.scheme not in _ALLOWED_SCHEMES or not url.host:
        msg = f"Relay endpoint must be an http(s) or ws(s) URL, got {endpoint!r}"
        raise ConfigError(msg)
    return endpoint


def default_storage_dir() -> Path:
    return Path.home() / ".relaychat"


@dataclass
class SessionConfig:
    """Configuration for a ChatSession."""

    endpoint: str = DEFAULT_ENDPOINT
    """Relay service URL, e.g. "http://localhost:5002"."""

    transport_options: dict[str, Any] = field(default_factory=dict)
    """Options passed to Transport.open() (headers, auth, transports, ...)."""

    storage_name: str = DEFAULT_STORAGE_NAME
    """Name of the persisted session record."""

    storage_dir: Path = field(default_factory=default_storage_dir)
    """Directory used by the default file snapshot store."""

    def __post_init__(self) -> None:
        self.endpoint = validate_endpoint(self.endpoint)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "SessionConfig":
        """Build a config with the endpoint read from the environment.

        The endpoint comes from RELAY_SERVER_URL, falling back to
        DEFAULT_ENDPOINT when unset or empty.
        """
        env = os.environ if environ is None else environ
        endpoint = env.get(ENDPOINT_ENV_VAR) or DEFAULT_ENDPOINT
        return cls(endpoint=endpoint, **overrides)
