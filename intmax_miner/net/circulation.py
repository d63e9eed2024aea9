"""Client for the circulation/exclusion service.

The service answers ``GET {base}/addresses/{address}/exclusion`` with either

* ``{"isExcluded": true|false}`` on success, or
* a structured error body ``{"code": "...", "message": "..."}``.

Outcome mapping:

* success body → :class:`CirculationStatus`
* well-formed error body (any status) →
  :class:`~intmax_miner.core.exceptions.RemoteRejection`, never retried
* transport error, non-2xx without an error body, malformed JSON →
  :class:`~intmax_miner.core.exceptions.TransientNetworkError`, retried by
  the :class:`~intmax_miner.net.retry.RetryExecutor`

Typical usage::

    async with CirculationClient(settings.circulation_server_url, executor) as client:
        status = await client.get_circulation(settings.withdrawal_address)
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from intmax_miner.core.exceptions import RemoteRejection, TransientNetworkError
from intmax_miner.core.models import Address
from intmax_miner.net.retry import RetryExecutor

__all__ = ["CirculationClient", "CirculationStatus", "ServiceErrorBody"]

logger = logging.getLogger(__name__)

_SOURCE: Final[str] = "circulation"


class CirculationStatus(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    is_excluded: bool = Field(alias="isExcluded")


class ServiceErrorBody(BaseModel):
    """Structured error payload returned by the service."""

    code: Any = None
    message: str


def _error_body(body: object) -> ServiceErrorBody | None:
    """Return the structured error in *body*, or ``None`` if it is not one."""
    if not isinstance(body, dict) or "isExcluded" in body or "message" not in body:
        return None
    if not isinstance(body["message"], str):
        return None
    return ServiceErrorBody.model_validate(body)


class CirculationClient:
    """Async client for the circulation/exclusion endpoint.

    Args:
        base_url: Service base URL, e.g. ``https://api.example.io/v1``.
        executor: Retry wrapper applied to each lookup.
        timeout: Request timeout in seconds.
        http: Pre-built :class:`httpx.AsyncClient`; created lazily when omitted.
    """

    def __init__(
        self,
        base_url: str,
        executor: RetryExecutor,
        *,
        timeout: float = 15.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._executor = executor
        self._timeout = timeout
        self._http = http

    async def __aenter__(self) -> CirculationClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
        self._http = None

    async def get_circulation(self, address: Address) -> CirculationStatus:
        """Return whether *address* is excluded from circulation.

        Raises:
            RemoteRejection: The service rejected the request.
            PersistentFailure: Transient failures outlasted the retry budget.
        """
        logger.info("Getting circulation for address %s", address)
        return await self._executor.execute(
            lambda: self._fetch(address),
            label=f"circulation of {address}",
        )

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http

    async def _fetch(self, address: Address) -> CirculationStatus:
        url = f"{self._base_url}/addresses/{address}/exclusion"
        try:
            response = await self._client().get(url)
        except httpx.TransportError as exc:
            raise TransientNetworkError(_SOURCE, f"{type(exc).__name__}: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TransientNetworkError(
                _SOURCE, f"HTTP {response.status_code}: unparseable body {response.text[:200]!r}"
            ) from exc

        error = _error_body(body)
        if error is not None:
            raise RemoteRejection(
                _SOURCE,
                error.message,
                code=None if error.code is None else str(error.code),
            )

        if not response.is_success:
            raise TransientNetworkError(_SOURCE, f"HTTP {response.status_code} from {url}")

        try:
            return CirculationStatus.model_validate(body)
        except ValidationError as exc:
            raise TransientNetworkError(_SOURCE, f"malformed response: {exc}") from exc
