"""Client settings loaded from the environment."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

ENV_PREFIX = "CHECKERS_"


class ClientSettings(BaseModel):
    """Connection endpoint, default room and presentation timings."""

    server_url: str = "ws://localhost:8080/ws"
    default_room: str = Field(default="default", min_length=1)
    error_notice_seconds: float = Field(default=3.0, ge=0)
    info_notice_seconds: float = Field(default=2.0, ge=0)
    capture_highlight_seconds: float = Field(default=0.3, ge=0)
    allow_reselect: bool = False
    log_level: str = "WARNING"

    @field_validator("server_url")
    @classmethod
    def ensure_websocket_scheme(cls, value: str) -> str:
        if urlparse(value).scheme not in ("ws", "wss"):
            raise ValueError(f"server_url must use ws:// or wss://, got {value!r}")
        return value

    @field_validator("log_level")
    @classmethod
    def ensure_known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        """Build settings from ``CHECKERS_*`` variables, falling back to defaults."""

        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw.strip():
                values[name] = raw.strip()
        # The room variable is shorter than its field name.
        room = environ.get(ENV_PREFIX + "ROOM")
        if room and room.strip():
            values["default_room"] = room.strip()
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
