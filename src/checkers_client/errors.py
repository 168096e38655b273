"""Exception types raised by the checkers client."""

from __future__ import annotations


class CheckersClientError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(CheckersClientError, ValueError):
    """Settings could not be loaded or failed validation."""


class ProtocolError(CheckersClientError, ValueError):
    """An inbound payload was not a well-formed server message."""


class TransportError(CheckersClientError):
    """The underlying connection failed."""


class SendError(TransportError):
    """An outbound message could not be handed to the transport."""
