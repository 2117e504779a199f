"""Ordered "first success wins" cascade shared by location and rate providers."""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

import httpx

from geocurrency.utils.errors import (
    AllProvidersExhausted,
    ConfigurationError,
    DataProviderError,
    ProviderHTTPError,
    ProviderMalformedResponse,
    ProviderTimeout,
)
from geocurrency.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_TIMEOUT = 8.0
USER_AGENT = "geocurrency/0.1"

S = TypeVar("S", bound="NamedSource")
T = TypeVar("T")


class NamedSource:
    """Anything a cascade can try: has a name and a per-attempt timeout."""

    name: str
    timeout: float


@asynccontextmanager
async def http_client(client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client untouched, or a fresh one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT, "Accept": "application/json"}) as fresh:
        yield fresh


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    params: Optional[Dict[str, Any]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET ``url`` and decode JSON, mapping every failure onto the provider error taxonomy."""
    try:
        resp = await client.get(url, params=params, timeout=timeout)
    except httpx.TimeoutException as e:
        raise ProviderTimeout(f"{provider}: request timed out ({e.__class__.__name__})", provider) from e
    except httpx.HTTPError as e:
        raise DataProviderError(f"{provider}: request failed: {e}", provider) from e

    if not 200 <= resp.status_code < 300:
        raise ProviderHTTPError(f"{provider}: HTTP {resp.status_code}", provider, resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise ProviderMalformedResponse(f"{provider}: response is not JSON", provider) from e


class Cascade(Generic[S]):
    """Try sources strictly in order; the first one that answers wins.

    No fan-out: a later source is only contacted after every earlier one
    failed. Each attempt is bounded by its source's ``timeout``; a timed-out
    attempt is cancelled and counts as a failure (no retry).
    """

    def __init__(
        self,
        sources: Sequence[S],
        exhausted_error: Type[AllProvidersExhausted] = AllProvidersExhausted,
        label: str = "providers",
    ):
        self.sources: List[S] = list(sources)
        self.exhausted_error = exhausted_error
        self.label = label

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.sources]

    async def first_success(self, attempt: Callable[[S], Awaitable[T]]) -> Tuple[S, T]:
        errors: List[str] = []
        total = len(self.sources)

        for index, source in enumerate(self.sources, start=1):
            logger.debug(f"Trying {self.label} source {index}/{total}: {source.name}")
            try:
                value = await asyncio.wait_for(attempt(source), timeout=source.timeout)
            except asyncio.TimeoutError:
                err: DataProviderError = ProviderTimeout(
                    f"{source.name}: no answer within {source.timeout}s", source.name
                )
            except DataProviderError as e:
                err = e
            except Exception as e:  # a broken parser or normalizer is that source failing
                err = ProviderMalformedResponse(f"{source.name}: {e.__class__.__name__}: {e}", source.name)
            else:
                logger.info(f"{self.label} source {source.name} succeeded ({index}/{total})")
                return source, value

            logger.warning(f"{self.label} source {source.name} failed: {err}")
            errors.append(f"{source.name}: {err.__class__.__name__}: {err}")

        logger.error(f"All {total} {self.label} sources failed")
        raise self.exhausted_error(f"All {self.label} sources failed", errors=errors)

    async def probe(self, attempt: Callable[[S], Awaitable[Any]]) -> Dict[str, bool]:
        """Try every source independently (sequentially) and report which answered."""
        results: Dict[str, bool] = {}
        for source in self.sources:
            try:
                await asyncio.wait_for(attempt(source), timeout=source.timeout)
                results[source.name] = True
            except Exception as e:
                logger.warning(f"Health check failed for {source.name}: {e}")
                results[source.name] = False
        return results


@dataclass
class SourceSettings:
    """One configured cascade entry, as read from YAML."""

    name: str
    enabled: bool = True
    timeout: float = DEFAULT_TIMEOUT
    endpoint: Optional[str] = None
    api_key_env: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any, default_timeout: float = DEFAULT_TIMEOUT) -> "SourceSettings":
        """Accept either a bare provider name or a mapping."""
        if isinstance(value, str):
            return cls(name=value, timeout=default_timeout)
        if not isinstance(value, dict) or not value.get("name"):
            raise ConfigurationError(f"Provider entry needs a name: {value!r}")
        return cls(
            name=str(value["name"]),
            enabled=bool(value.get("enabled", True)),
            timeout=float(value.get("timeout", default_timeout)),
            endpoint=value.get("endpoint"),
            api_key_env=value.get("api_key_env"),
        )
