"""Custom exceptions for the napalm-gigacore clients."""

from __future__ import annotations

from dataclasses import dataclass


class GigaCoreError(Exception):
    """Base exception for all napalm-gigacore errors."""


class GigaCoreRequestError(GigaCoreError):
    """Raised when a network-level error occurs (connection refused, timeout, etc.)."""

    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url!r} failed: {cause}")


class GigaCoreResponseError(GigaCoreError):
    """Raised when the switch returns a non-2xx HTTP status code."""

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url!r}")


class GigaCoreDecodeError(GigaCoreError):
    """Raised when a response has an unexpected shape or type."""


class GigaCoreLivenessError(GigaCoreError):
    """Describes a push connection that stopped answering heartbeats."""


@dataclass
class GigaCoreRejection(GigaCoreError):
    """A mutating operation refused locally by policy.

    Rejections are recorded and logged by the adapter, never raised to the
    caller, and never count as connection failures.

    Attributes:
        operation: Name of the refused operation (e.g. ``"set_port_group"``).
        target: Port number or profile id the operation addressed.
        reason: Human-readable explanation.
    """

    operation: str
    target: int
    reason: str

    def __post_init__(self) -> None:
        super().__init__(f"{self.operation}({self.target}) rejected: {self.reason}")
