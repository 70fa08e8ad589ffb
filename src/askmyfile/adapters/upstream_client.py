"""Session-bound HTTP client for the document processing service."""

import logging
from dataclasses import dataclass
from enum import StrEnum
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Protocol

import httpx

from askmyfile.domain.exchange import (
    ExchangeOutcome,
    ExchangeSuccess,
    TransportFailure,
    UpstreamRejected,
)
from askmyfile.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class TimeoutClass(StrEnum):
    """Timeout budget of an exchange."""

    CONTROL = "control"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class UpstreamTimeouts:
    """Timeout in seconds for each timeout class."""

    control: float = 60.0
    transfer: float = 120.0

    def for_class(self, timeout_class: TimeoutClass) -> float:
        """Return the timeout for a class of exchange."""
        if timeout_class is TimeoutClass.TRANSFER:
            return self.transfer
        return self.control


class UpstreamClient(Protocol):
    """Client bound to a single user's upstream session."""

    user_id: str

    async def post(
        self,
        path: str,
        *,
        timeout_class: TimeoutClass = TimeoutClass.CONTROL,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> ExchangeOutcome:
        """POST to the upstream service and return the exchange outcome."""


class UpstreamClientFactory(Protocol):
    """Builds upstream clients bound to a user."""

    def for_user(self, user_id: str) -> UpstreamClient:
        """Return a client that carries the user's upstream session."""


def _refusing_cookie_jar() -> CookieJar:
    # The session store is the only place cookies live; a shared jar would
    # leak one user's session into another user's requests.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def extract_credential(response: httpx.Response) -> str | None:
    """Reduce every Set-Cookie header to name=value and join them."""
    pairs = []
    for header in response.headers.get_list("set-cookie"):
        pair = header.split(";", 1)[0].strip()
        if pair:
            pairs.append(pair)
    return "; ".join(pairs) or None


def _decode_payload(response: httpx.Response) -> object:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass
class HttpxUpstreamClient(UpstreamClient):
    """Runs each exchange through inject-before-send and capture-after-receive."""

    user_id: str
    session_store: SessionStore
    timeouts: UpstreamTimeouts
    http_client: httpx.AsyncClient

    def inject_credential(self, request: httpx.Request) -> None:
        """Attach the user's stored session cookie, if one was captured."""
        credential = self.session_store.get(self.user_id)
        if credential:
            request.headers["Cookie"] = credential

    def capture_credential(self, response: httpx.Response) -> None:
        """Store any session cookie the response sets, whatever its status."""
        credential = extract_credential(response)
        if credential:
            self.session_store.put(self.user_id, credential)

    async def post(
        self,
        path: str,
        *,
        timeout_class: TimeoutClass = TimeoutClass.CONTROL,
        data: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> ExchangeOutcome:
        """POST to the upstream service and return the exchange outcome."""
        request = self.http_client.build_request(
            "POST",
            path,
            data=data,
            files=files,
            timeout=self.timeouts.for_class(timeout_class),
        )
        self.inject_credential(request)
        try:
            response = await self.http_client.send(request)
        except httpx.TransportError as exc:
            logger.warning(
                "Upstream connection error for user %s on %s: %s: %s",
                self.user_id,
                path,
                type(exc).__name__,
                exc,
            )
            return TransportFailure(
                error=f"{type(exc).__name__}: {exc}",
                timed_out=isinstance(exc, httpx.TimeoutException),
            )
        self.capture_credential(response)

        payload = _decode_payload(response)
        headers = {key.lower(): value for key, value in response.headers.items()}
        if response.is_success:
            return ExchangeSuccess(
                status_code=response.status_code, payload=payload, headers=headers
            )
        logger.error(
            "Upstream error for user %s on %s: status=%s server=%s body=%r",
            self.user_id,
            path,
            response.status_code,
            headers.get("server"),
            payload,
        )
        return UpstreamRejected(
            status_code=response.status_code, payload=payload, headers=headers
        )


@dataclass
class HttpxUpstreamClientFactory(UpstreamClientFactory):
    """Hands out session-bound clients over one shared connection pool."""

    session_store: SessionStore
    timeouts: UpstreamTimeouts
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls,
        base_url: str,
        session_store: SessionStore,
        timeouts: UpstreamTimeouts,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "HttpxUpstreamClientFactory":
        """Create a factory with a managed httpx session."""
        http_client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            cookies=_refusing_cookie_jar(),
            transport=transport,
        )
        return cls(
            session_store=session_store, timeouts=timeouts, http_client=http_client
        )

    def for_user(self, user_id: str) -> HttpxUpstreamClient:
        """Return a client that carries the user's upstream session."""
        return HttpxUpstreamClient(
            user_id=user_id,
            session_store=self.session_store,
            timeouts=self.timeouts,
            http_client=self.http_client,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
