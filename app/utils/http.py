"""HTTP utilities for trying alternative Jibble endpoints in order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, TypeVar

from app.core.errors import UpstreamAuthError, UpstreamError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestStrategy:
    """One candidate way of performing an upstream call."""

    method: str
    path: str
    params: Mapping[str, Any] | None = None
    json: Any = None
    label: str = field(default="", compare=False)

    def describe(self) -> str:
        return self.label or f"{self.method.upper()} {self.path}"


async def first_successful(
    strategies: Iterable[RequestStrategy],
    send: Callable[[RequestStrategy], Awaitable[T]],
) -> tuple[RequestStrategy, T]:
    """
    Run ``send`` for each strategy until one succeeds.

    Non-auth upstream failures fall through to the next candidate. Auth
    failures stop the chain immediately since every candidate shares the
    same token. The last failure is re-raised when nothing succeeds.
    """
    last_error: UpstreamError | None = None
    for strategy in strategies:
        try:
            return strategy, await send(strategy)
        except UpstreamAuthError:
            raise
        except UpstreamError as exc:
            logger.info("Jibble candidate %s failed: %s", strategy.describe(), exc)
            last_error = exc

    if last_error is not None:
        raise last_error
    raise UpstreamError("No request strategies were provided.")


__all__ = ["RequestStrategy", "first_successful"]
