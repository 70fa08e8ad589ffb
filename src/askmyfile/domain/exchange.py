"""Outcomes of a single exchange with the processing service."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExchangeSuccess:
    """Upstream answered with a 2xx status."""

    status_code: int
    payload: object
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UpstreamRejected:
    """Upstream answered with a non-2xx status."""

    status_code: int
    payload: object
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransportFailure:
    """No response was received (refused, DNS failure, timeout)."""

    error: str
    timed_out: bool = False


ExchangeOutcome = ExchangeSuccess | UpstreamRejected | TransportFailure
