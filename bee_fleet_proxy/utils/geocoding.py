"""
Reverse geocoding for the Bee fleet proxy

Uses OpenStreetMap Nominatim to turn device coordinates into a
city/state/country place, with an in-process cache keyed on a ~100m grid.
"""

import logging
import math
import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass
from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, Optional

import requests

from bee_fleet_proxy.utils.error_codes import ErrorCode, StructuredError
from bee_fleet_proxy.utils.wide_events import WideEvent

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "BeeFleetRewards/1.0"
DEFAULT_TIMEOUT = 10  # seconds
NOMINATIM_ZOOM = 10  # city-level detail

KEY_PRECISION = Decimal("0.001")  # 3 decimals, roughly a 100m cell
CITY_FIELDS = ("city", "town", "village", "county")


@dataclass(frozen=True)
class Place:
    """Human-readable location for a coordinate."""

    city: str = ""
    state: str = ""
    country: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """True for finite values inside the WGS84 range."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def _truncate(value: float) -> Decimal:
    # str() first so 40.001 stays 40.001 instead of 40.000999...
    truncated = Decimal(str(value)).quantize(KEY_PRECISION, rounding=ROUND_DOWN)
    return truncated.copy_abs() if truncated.is_zero() else truncated


def coordinate_key(latitude: float, longitude: float) -> str:
    """
    Cache key for a coordinate: both values truncated toward zero to 3 decimals.

    >>> coordinate_key(40.0001, -73.0002)
    '40.000,-73.000'

    Raises:
        ValueError: coordinate is not finite or out of range
    """
    if not is_valid_coordinate(latitude, longitude):
        raise ValueError(f"invalid coordinate ({latitude}, {longitude})")
    return f"{_truncate(latitude)},{_truncate(longitude)}"


def parse_place(data: Dict[str, Any]) -> Place:
    """Extract a Place from a Nominatim reverse response."""
    address = data.get("address") or {}
    city = next((address[field] for field in CITY_FIELDS if address.get(field)), "")
    country_code = address.get("country_code") or ""
    return Place(
        city=city,
        state=address.get("state") or "",
        country=country_code.upper(),
    )


class GeocodeCache:
    """
    Coordinate -> Place memo backed by Nominatim reverse geocoding.

    Entries never expire. With ``max_entries`` > 0 the least recently used
    entry is evicted once the bound is exceeded. Failed lookups are never
    cached, so the next request for the same cell tries again.
    """

    def __init__(
        self,
        url: str = NOMINATIM_REVERSE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        max_entries: int = 0,
    ):
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Place]" = OrderedDict()
        # Guards dict bookkeeping only; lookups run outside the lock
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.lookups_failed = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, latitude: float, longitude: float) -> Optional[Place]:
        """Cached Place for the coordinate's cell, without any network call."""
        if not is_valid_coordinate(latitude, longitude):
            return None
        key = coordinate_key(latitude, longitude)
        with self._lock:
            place = self._entries.get(key)
            if place is not None and self.max_entries:
                self._entries.move_to_end(key)
            return place

    def resolve(self, latitude: float, longitude: float) -> Optional[Place]:
        """
        Place for a coordinate, from cache or from Nominatim.

        Args:
            latitude: GPS latitude
            longitude: GPS longitude

        Returns:
            Place, or None if the coordinate is invalid or the geocoder could not
            be reached or answered badly
        """
        if not is_valid_coordinate(latitude, longitude):
            logger.warning(f"Skipping geocode for invalid coordinate ({latitude}, {longitude})")
            return None

        key = coordinate_key(latitude, longitude)
        place = self.get(latitude, longitude)
        if place is not None:
            with self._lock:
                self.hits += 1
            logger.debug(f"Geocode cache hit for {key}")
            return place

        with self._lock:
            self.misses += 1

        # Raw coordinates go upstream; only the cache key is truncated
        place = self._lookup(latitude, longitude)
        if place is None:
            with self._lock:
                self.lookups_failed += 1
            return None

        self._store(key, place)
        logger.debug(f"Geocode cached for {key}: {place}")
        return place

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "size": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "lookups_failed": self.lookups_failed,
                "max_entries": self.max_entries,
            }

    def _store(self, key: str, place: Place) -> None:
        with self._lock:
            self._entries[key] = place
            if self.max_entries:
                self._entries.move_to_end(key)
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"Geocode cache evicted {evicted}")

    def _lookup(self, latitude: float, longitude: float) -> Optional[Place]:
        """Single Nominatim call. Every failure is logged and reported as None."""
        event = WideEvent("external_api_geocoding")
        event.add_context(
            service="nominatim",
            url=self.url,
            latitude=latitude,
            longitude=longitude,
            timeout_seconds=self.timeout,
        )
        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "json",
            "zoom": NOMINATIM_ZOOM,
        }

        try:
            with event.timer("request"):
                response = requests.get(
                    self.url,
                    params=params,
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()

            if not isinstance(data, dict):
                raise ValueError(f"unexpected payload type {type(data).__name__}")

            place = parse_place(data)
            event.add_context(status_code=response.status_code)
            event.mark_success()
            event.emit()
            return place

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.warning(f"Geocoding API HTTP error for ({latitude}, {longitude}): {status_code}")
            event.add_context(status_code=status_code)
            failure = StructuredError(
                ErrorCode.E104_GEOCODING_API_ERROR,
                f"Geocoding API returned HTTP {status_code}",
                exception=e,
                latitude=latitude,
                longitude=longitude,
            )

        except requests.exceptions.RequestException as e:
            logger.warning(f"Geocoding API unreachable for ({latitude}, {longitude}): {e}")
            failure = StructuredError(
                ErrorCode.E104_GEOCODING_API_ERROR,
                f"Geocoding API request failed: {type(e).__name__}",
                exception=e,
                latitude=latitude,
                longitude=longitude,
            )

        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Geocoding API parsing error for ({latitude}, {longitude}): {e}")
            failure = StructuredError(
                ErrorCode.E104_GEOCODING_API_ERROR,
                "Geocoding API returned an unreadable response",
                exception=e,
                latitude=latitude,
                longitude=longitude,
            )

        except Exception as e:
            logger.exception(f"Unexpected error geocoding ({latitude}, {longitude}): {e}")
            failure = StructuredError(
                ErrorCode.E104_GEOCODING_API_ERROR,
                "Unexpected geocoding failure",
                exception=e,
                latitude=latitude,
                longitude=longitude,
            )

        event.add_error(failure)
        event.emit(level="warning", force=True)
        return None
