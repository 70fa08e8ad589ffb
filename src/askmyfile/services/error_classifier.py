"""Maps upstream exchange outcomes to the caller-visible error taxonomy.

Every rule about how upstream failures are reported lives here, so gateway
operations only decide what to send and what to persist. The functions are
pure: diagnostics are logged by the caller, never folded into messages beyond
what each rule allows.
"""

from collections.abc import Mapping

from askmyfile.domain.errors import ClassifiedError, ErrorCategory
from askmyfile.domain.exchange import (
    ExchangeOutcome,
    ExchangeSuccess,
    TransportFailure,
    UpstreamRejected,
)

PORT_HIJACK_SIGNATURES = ("AirTunes", "AirPlay")
LOOPBACK_UPSTREAM_URL = "http://127.0.0.1:5000"

_UNREACHABLE_MESSAGE = (
    "Unable to connect to the processing service. "
    "Please ensure it is running and reachable."
)
_PORT_CONFLICT_MESSAGE = (
    "Port 5000 conflict detected: macOS AirPlay Receiver is intercepting requests."
)
_PORT_CONFLICT_DETAILS = (
    "On macOS, localhost:5000 is used by AirPlay Receiver. Use 127.0.0.1:5000 "
    "instead, or disable AirPlay Receiver in System Settings > General > "
    "AirDrop & Handoff."
)
_PORT_CONFLICT_SOLUTION = (
    f"Set UPSTREAM_BASE_URL={LOOPBACK_UPSTREAM_URL} in your .env file "
    "or environment."
)
_ACCESS_DENIED_MESSAGE = (
    "Processing service denied access. Please ensure it is running "
    "and properly configured."
)
_INVALID_REQUEST_MESSAGE = "Invalid request to the processing service"
_GENERIC_REJECTION_MESSAGE = "Error from the processing service"
_INTERNAL_ERROR_MESSAGE = "Processing service error. Please try again later."
_LOGICAL_FAILURE_MESSAGE = "Processing service returned failure"


def classify(outcome: ExchangeOutcome) -> ClassifiedError | None:
    """Classify an exchange outcome; successful exchanges return None."""
    if isinstance(outcome, ExchangeSuccess):
        return None
    return classify_failure(outcome)


def classify_failure(outcome: UpstreamRejected | TransportFailure) -> ClassifiedError:
    """Classify an exchange that did not produce a 2xx response."""
    if isinstance(outcome, TransportFailure):
        return ClassifiedError(
            503, ErrorCategory.UPSTREAM_UNREACHABLE, _UNREACHABLE_MESSAGE
        )
    return _classify_rejection(outcome)


def classify_envelope(
    payload: object,
    required_fields: Mapping[str, type] | None = None,
    optional_fields: Mapping[str, type] | None = None,
) -> ClassifiedError | None:
    """Check the upstream {success, message, data} envelope of a 2xx response.

    ``required_fields`` maps keys that must be present in ``data`` to the type
    their value must have. ``optional_fields`` may be missing or null but must
    have the given type when set.
    """
    if not isinstance(payload, Mapping) or payload.get("success") is not True:
        return logical_failure(_upstream_message(payload))
    if not required_fields and not optional_fields:
        return None
    data = payload.get("data")
    if not isinstance(data, Mapping):
        return logical_failure(_upstream_message(payload))
    for name, expected in (required_fields or {}).items():
        if not isinstance(data.get(name), expected):
            return logical_failure(_upstream_message(payload))
    for name, expected in (optional_fields or {}).items():
        value = data.get(name)
        if value is not None and not isinstance(value, expected):
            return logical_failure(_upstream_message(payload))
    return None


def logical_failure(message: str | None = None) -> ClassifiedError:
    """Build the error for a 2xx response whose payload reports failure."""
    return ClassifiedError(
        500,
        ErrorCategory.UPSTREAM_LOGICAL_FAILURE,
        message or _LOGICAL_FAILURE_MESSAGE,
    )


def is_port_hijack(headers: Mapping[str, str]) -> bool:
    """Return True when the Server header matches a known local port hijacker."""
    server = next(
        (value for key, value in headers.items() if key.lower() == "server"), ""
    )
    return any(signature in server for signature in PORT_HIJACK_SIGNATURES)


def _classify_rejection(outcome: UpstreamRejected) -> ClassifiedError:
    status = outcome.status_code
    if status == 400:
        return ClassifiedError(
            400,
            ErrorCategory.UPSTREAM_REJECTED_INPUT,
            _upstream_message(outcome.payload) or _INVALID_REQUEST_MESSAGE,
        )
    if status == 403:
        if is_port_hijack(outcome.headers):
            return ClassifiedError(
                503,
                ErrorCategory.PORT_CONFLICT,
                _PORT_CONFLICT_MESSAGE,
                details=_PORT_CONFLICT_DETAILS,
                solution=_PORT_CONFLICT_SOLUTION,
            )
        return ClassifiedError(
            503, ErrorCategory.UPSTREAM_ACCESS_DENIED, _ACCESS_DENIED_MESSAGE
        )
    if status >= 500:
        return ClassifiedError(
            502, ErrorCategory.UPSTREAM_INTERNAL_ERROR, _INTERNAL_ERROR_MESSAGE
        )
    return ClassifiedError(
        status,
        ErrorCategory.UPSTREAM_REJECTED_INPUT,
        _upstream_message(outcome.payload, include_error=True)
        or _GENERIC_REJECTION_MESSAGE,
    )


def _upstream_message(payload: object, include_error: bool = False) -> str | None:
    if isinstance(payload, str):
        return payload.strip() or None
    if not isinstance(payload, Mapping):
        return None
    keys = ("message", "error") if include_error else ("message",)
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None
