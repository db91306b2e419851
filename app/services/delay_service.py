# path: tcat-route-api/app/services/delay_service.py

"""
Live bus delays for a built route.

The delay endpoint is polled on a timer by the route detail screen; each poll
clears the displayed delays, asks for the delay of the first bus at its first
stop, and spreads that delay over the rest of the trip.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.models.route_models import DirectionType, Route


logger = logging.getLogger(__name__)

RETRY_STATUS = {500, 502, 503, 504}


@dataclass(frozen=True)
class DelayResult:
    success: bool
    delay: Optional[int] = None


class DelayClient:
    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "DelayClient":
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=httpx.Timeout(self.settings.request_timeout),
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if self._client is None:
            raise RuntimeError("DelayClient must be used as an async context manager")

        retries = 0
        max_retries = self.settings.max_retries
        while True:
            try:
                response = await self._client.get(path, params=params)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning(f"HTTP Error {status} for {e.request.url}")
                if status not in RETRY_STATUS or retries >= max_retries:
                    logger.error(f"Giving up on {path} after {retries} retries")
                    return None
            except httpx.RequestError as e:
                logger.error(f"Network error requesting {path}: {e}")
                if retries >= max_retries:
                    return None
            except ValueError as e:
                logger.error(f"Malformed JSON from {path}: {e}")
                return None

            retries += 1
            logger.info(f"Retrying request ({retries}/{max_retries})...")
            await asyncio.sleep(self.settings.retry_delay * (2 ** (retries - 1)))

    async def get_delay(self, trip_id: str, stop_id: str) -> Optional[DelayResult]:
        body = await self._request("/delay", {"tripID": trip_id, "stopID": stop_id})
        if not isinstance(body, dict):
            return None

        if not body.get("success"):
            return DelayResult(success=False)

        data = body.get("data")
        delay = data.get("delay") if isinstance(data, dict) else None
        if delay is not None and not isinstance(delay, int):
            logger.error(f"Unexpected delay value for trip {trip_id}: {delay!r}")
            return None
        return DelayResult(success=True, delay=delay)


def apply_delay(route: Route, delay: Optional[int]) -> None:
    """
    Sets the delay of the first bus leg in both lists and accumulates it onto
    every later display leg that is not itself a departure.

    Only ``delay`` fields are assigned; the direction lists are never replaced.
    """
    raw_depart = route.get_first_depart_raw_direction()
    if raw_depart is not None:
        raw_depart.delay = delay

    first_depart = route.get_first_depart_direction()
    if first_depart is None:
        return
    first_depart.delay = delay

    start = next(i for i, d in enumerate(route.directions) if d is first_depart)
    for direction in route.directions[start + 1:]:
        if direction.type == DirectionType.DEPART:
            continue
        if direction.delay is not None:
            direction.delay += delay or 0
        else:
            direction.delay = delay


async def refresh_delays(route: Route, client: DelayClient) -> bool:
    """
    Fetches the current delay for ``route`` and applies it. Returns whether a
    delay was applied; failures are logged and retried on the next poll.
    """
    delay_direction = route.get_first_depart_raw_direction()
    if delay_direction is None:
        return False

    for direction in route.directions:
        direction.delay = None

    trip_id = delay_direction.trip_identifiers[0] if delay_direction.trip_identifiers else None
    stop_id = delay_direction.stops[0].id if delay_direction.stops else None
    if trip_id is None or stop_id is None:
        logger.debug("No trip or stop identifier to look up a delay for")
        return False

    result = await client.get_delay(trip_id, stop_id)
    if result is None:
        logger.warning(f"Delay lookup failed for trip {trip_id} at stop {stop_id}")
        return False
    if not result.success:
        logger.warning(f"Delay lookup for trip {trip_id} returned success: false")
        return False

    apply_delay(route, result.delay)
    logger.info(f"Applied delay {result.delay} to trip {trip_id}")
    return True
