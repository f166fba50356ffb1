from __future__ import annotations

import logging
import math
import time
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from field_timesheets.core.logging import get_logger, log_event

logger = get_logger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"

# Minutes assumed for a pair the provider answered without a usable duration.
_UNRESOLVED_PAIR_MINUTES = 15


class Deadline:
    """Wall-clock budget shared by every travel lookup of one allocation call."""

    def __init__(self, seconds: float | None) -> None:
        self._expires_at = None if seconds is None else time.monotonic() + max(0.0, seconds)

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


class TravelTimeProvider(Protocol):
    def durations(
        self, addresses: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[int] | None:
        """Whole minutes between each consecutive pair, or None when unavailable."""


class GoogleDistanceMatrixProvider:
    def __init__(self, api_key: str, *, timeout_seconds: float = 10.0) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def durations(
        self, addresses: Sequence[str], *, deadline: Deadline | None = None
    ) -> list[int] | None:
        if not self.api_key or len(addresses) < 2:
            return None

        out: list[int] = []
        for origin, destination in zip(addresses, addresses[1:]):
            timeout = self.timeout_seconds
            if deadline is not None:
                remaining = deadline.remaining()
                if remaining is not None:
                    if remaining <= 0:
                        log_event(
                            logger,
                            "allocation.travel.deadline",
                            level=logging.WARNING,
                            pairs_resolved=len(out),
                            pairs_total=len(addresses) - 1,
                        )
                        return None
                    timeout = min(timeout, remaining)
            try:
                out.append(self._pair_minutes(origin, destination, timeout=timeout))
            except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
                log_event(
                    logger,
                    "allocation.travel.error",
                    level=logging.WARNING,
                    error=f"{type(e).__name__}: {e}",
                    pairs_resolved=len(out),
                    pairs_total=len(addresses) - 1,
                )
                return None
        return out

    def _pair_minutes(self, origin: str, destination: str, *, timeout: float) -> int:
        resp = httpx.get(
            DISTANCE_MATRIX_URL,
            params={
                "origins": origin,
                "destinations": destination,
                "key": self.api_key,
                "units": "imperial",
            },
            timeout=timeout,
            follow_redirects=True,
        )
        resp.raise_for_status()
        return _element_minutes(resp.json())


def _element_minutes(data: dict[str, Any]) -> int:
    status = data.get("status")
    if status and status != "OK":
        raise ValueError(f"Distance matrix status {status}")
    rows = data.get("rows") or [{}]
    elements = rows[0].get("elements") or [{}]
    element = elements[0]
    seconds = (element.get("duration") or {}).get("value")
    if element.get("status") == "OK" and seconds is not None:
        return math.ceil(float(seconds) / 60)
    return _UNRESOLVED_PAIR_MINUTES


def provider_for(
    api_key: str | None, *, timeout_seconds: float = 10.0
) -> TravelTimeProvider | None:
    if not api_key:
        return None
    return GoogleDistanceMatrixProvider(api_key, timeout_seconds=timeout_seconds)
