"""Shared DTOs and error types used across the session components.

Only lightweight, common data models should live here. Do not place
aiortc or HTTP client code in this package.
"""

from .dto import ClientSecret, Credential, CredentialPayload, ErrorInfo, SessionSnapshot
from .errors import (
    CredentialError,
    CredentialErrorKind,
    MediaAccessError,
    MediaAccessErrorKind,
    MessageDecodeError,
    NegotiationError,
    NegotiationErrorKind,
    RealtimeSessionError,
    TransportError,
)

__all__ = [
    # DTOs
    "ClientSecret",
    "Credential",
    "CredentialPayload",
    "ErrorInfo",
    "SessionSnapshot",
    # Errors
    "RealtimeSessionError",
    "CredentialError",
    "CredentialErrorKind",
    "MediaAccessError",
    "MediaAccessErrorKind",
    "NegotiationError",
    "NegotiationErrorKind",
    "MessageDecodeError",
    "TransportError",
]
