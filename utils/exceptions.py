"""
Custom exception hierarchy for EvalHub.

All project-specific exceptions inherit from EvalHubError.
"""

from typing import Optional


class EvalHubError(Exception):
    """Base exception for EvalHub."""

    pass


class ConfigError(EvalHubError):
    """Invalid or missing configuration."""

    pass


class AuthConfigError(ConfigError):
    """API key missing for a hosted (non-loopback) endpoint."""

    pass


class TenantDiscoveryError(EvalHubError):
    """The default tenant could not be discovered."""

    pass


class HttpError(EvalHubError):
    """Non-2xx response from the EvalHub API."""

    def __init__(
        self,
        status: int,
        path: str,
        reason: str = "",
        detail: Optional[str] = None,
    ):
        self.status = status
        self.path = path
        self.reason = reason
        self.detail = detail
        message = f"Request to {path} failed: {status} {reason}".rstrip()
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class DuplicateDatasetError(EvalHubError):
    """A dataset with the same name already exists for the tenant."""

    pass


class NotFoundError(EvalHubError):
    """Lookup by id or name yielded nothing."""

    pass


class ShapeError(EvalHubError):
    """Response body does not have the expected structure."""

    pass


class InvalidArgumentError(EvalHubError, ValueError):
    """Caller supplied an invalid combination of arguments."""

    pass


class UnknownPredictorTypeError(EvalHubError):
    """Predictor matched none of the supported capability probes."""

    pass
