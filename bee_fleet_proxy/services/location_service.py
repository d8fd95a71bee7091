"""
Location enrichment.

Fetches a device's last known location from Bee Maps and adds the
reverse-geocoded city, state and country. Many devices can be enriched at
once on a bounded thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, List, Optional

from bee_fleet_proxy.exceptions import FleetProxyError, InvalidInputError, UnauthorizedError
from bee_fleet_proxy.services.upstream_proxy import UpstreamProxy
from bee_fleet_proxy.utils.geocoding import GeocodeCache

logger = logging.getLogger(__name__)

LOCATION_PATH = "/location"


def run_fanout(func, items: List[Any], max_workers: int = 0) -> Dict[Any, Any]:
    """
    Call ``func(item)`` for every item on a thread pool.

    Args:
        func: Callable taking one item
        items: Work items; each must be hashable
        max_workers: Pool size bound, 0 means one worker per item

    Returns:
        {item: result}. Exceptions propagate from the first failing item.
    """
    if not items:
        return {}

    workers = len(items) if max_workers <= 0 else min(max_workers, len(items))
    results: Dict[Any, Any] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fanout") as executor:
        futures = {executor.submit(func, item): item for item in items}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results


class LocationService:
    """Composes the upstream proxy and the geocode cache."""

    def __init__(self, proxy: UpstreamProxy, geocoder: GeocodeCache, max_workers: int = 0):
        self.proxy = proxy
        self.geocoder = geocoder
        self.max_workers = max_workers

    def get_enriched_location(self, device_id: Optional[str]) -> Any:
        """
        Last known location of a device, with place names when available.

        Raises:
            InvalidInputError: device_id missing
            FleetProxyError: any upstream failure from the proxy
        """
        if not device_id or not str(device_id).strip():
            raise InvalidInputError("deviceId query param required", field="deviceId")

        data = self.proxy.forward(LOCATION_PATH, {"deviceId": device_id})

        if isinstance(data, dict) and data.get("lat") is not None and data.get("lon") is not None:
            try:
                place = self.geocoder.resolve(float(data["lat"]), float(data["lon"]))
            except (TypeError, ValueError, ArithmeticError):
                logger.warning(f"Device {device_id} reported non-numeric coordinates")
                place = None
            if place is not None:
                data.update(place.to_dict())

        return data

    def get_enriched_locations(self, device_ids: Iterable[str]) -> Dict[str, Any]:
        """
        Enriched locations for many devices in parallel.

        A device whose lookup fails maps to None. A missing API key fails the
        whole batch since no device could succeed.
        """
        unique_ids = list(dict.fromkeys(d for d in device_ids if d))
        return run_fanout(self._location_or_none, unique_ids, self.max_workers)

    def _location_or_none(self, device_id: str) -> Any:
        try:
            return self.get_enriched_location(device_id)
        except UnauthorizedError:
            raise
        except FleetProxyError as e:
            logger.warning(f"Location lookup failed for device {device_id}: {e}")
            return None
