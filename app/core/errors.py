"""Typed failures raised at the flow boundary.

Every failure a flow can report is one of four kinds so that callers (the
HTTP layer, the CLI, a UI) can choose user-facing copy without matching on
message text:

- ``ValidationError``: the request was rejected before any provider call.
- ``ProviderUnavailableError``: transport failure, timeout, overload.
- ``ConfigurationError``: a provider credential is missing or rejected.
- ``OutputConformanceError``: the provider replied, but not in the declared shape.

An empty result (no videos, no concepts) is a successful outcome and is not
modelled as an exception.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    CONFIGURATION = "configuration"
    OUTPUT_CONFORMANCE = "output_conformance"


class FlowError(Exception):
    """Base class for classified flow failures."""

    kind: ErrorKind
    http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        flow: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.flow = flow
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "flow": self.flow,
            "field": self.field,
        }


class ValidationError(FlowError):
    """Input failed schema constraints; never reaches a provider."""

    kind = ErrorKind.VALIDATION
    http_status = 422


class ProviderUnavailableError(FlowError):
    kind = ErrorKind.PROVIDER_UNAVAILABLE
    http_status = 503

    def __init__(
        self,
        message: str,
        *,
        flow: Optional[str] = None,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, flow=flow)
        self.provider = provider
        self.status_code = status_code


class ConfigurationError(FlowError):
    """A provider credential is missing or was rejected by the provider."""

    kind = ErrorKind.CONFIGURATION
    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        flow: Optional[str] = None,
        setting: Optional[str] = None,
    ) -> None:
        super().__init__(message, flow=flow, field=setting)
        self.setting = setting


class OutputConformanceError(FlowError):
    kind = ErrorKind.OUTPUT_CONFORMANCE
    http_status = 502


def field_from_loc(loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location as a dotted field path."""
    return ".".join(str(part) for part in loc) or "__root__"
