"""
Fleet aggregation.

Joins devices, weekly rewards and enriched locations by device id, the same
view a dashboard would otherwise assemble from separate calls.
"""

import logging
from typing import Any, Dict, List, Optional

from bee_fleet_proxy.exceptions import FleetProxyError, InvalidInputError, UnauthorizedError
from bee_fleet_proxy.services.location_service import LocationService, run_fanout
from bee_fleet_proxy.services.upstream_proxy import UpstreamProxy
from bee_fleet_proxy.utils.time_utils import current_reward_period, recent_reward_periods
from bee_fleet_proxy.utils.wide_events import track_operation

logger = logging.getLogger(__name__)

DEVICES_PATH = "/devices"
REWARDS_PATH = "/hivemapperRewards"


def rewards_by_device(rewards: Any) -> Dict[str, Dict[str, Any]]:
    """Index a rewards payload's ``devicesWithRewards`` entries by device id."""
    if not isinstance(rewards, dict):
        return {}
    indexed = {}
    for record in rewards.get("devicesWithRewards") or []:
        device = record.get("device") if isinstance(record, dict) else None
        if isinstance(device, dict) and device.get("id"):
            indexed[device["id"]] = record
    return indexed


class FleetService:
    """Device listing, rewards lookups and the joined fleet view."""

    def __init__(self, proxy: UpstreamProxy, locations: LocationService, max_workers: int = 0):
        self.proxy = proxy
        self.locations = locations
        self.max_workers = max_workers

    def list_devices(self) -> Any:
        return self.proxy.forward(DEVICES_PATH, {})

    def get_rewards(self, reward_period: Optional[str]) -> Any:
        if not reward_period or not str(reward_period).strip():
            raise InvalidInputError("rewardPeriod query param required", field="rewardPeriod")
        return self.proxy.forward(REWARDS_PATH, {"rewardPeriod": reward_period})

    def fleet_overview(self, reward_period: Optional[str] = None) -> Dict[str, Any]:
        """
        One row per device with its place, last-seen time and this week's rewards.

        The device list must load; rewards and per-device locations degrade
        to empty values when they fail.
        """
        reward_period = reward_period or current_reward_period()

        with track_operation("fleet_overview", reward_period=reward_period) as event:
            device_payload = self.list_devices()
            devices = []
            if isinstance(device_payload, dict):
                devices = device_payload.get("devices") or []

            try:
                rewards = rewards_by_device(self.get_rewards(reward_period))
            except UnauthorizedError:
                raise
            except FleetProxyError as e:
                logger.warning(f"Rewards unavailable for {reward_period}: {e}")
                rewards = {}

            locations = self.locations.get_enriched_locations(
                d.get("id") for d in devices if isinstance(d, dict)
            )

            rows = [
                self._build_row(device, locations.get(device.get("id")), rewards.get(device.get("id")))
                for device in devices
                if isinstance(device, dict)
            ]
            event.add_business_metric("devices", len(rows))
            event.add_business_metric("devices_located", sum(1 for v in locations.values() if v))
            event.add_business_metric("devices_rewarded", len(rewards))

        return {"rewardPeriod": reward_period, "devices": rows}

    def reward_history(self, device_id: str, weeks: int) -> Dict[str, Any]:
        """Weekly rewards for one device over the ``weeks`` most recent periods, newest first."""
        if not device_id:
            raise InvalidInputError("deviceId is required", field="deviceId")

        periods = recent_reward_periods(weeks)
        by_period = run_fanout(self._rewards_or_none, periods, self.max_workers)

        history: List[Dict[str, Any]] = []
        for period in periods:
            record = rewards_by_device(by_period.get(period)).get(device_id) or {}
            history.append({
                "rewardPeriod": period,
                "honeyRewards": record.get("rewardAmountHoney"),
                "mountRating": record.get("rewardMountRating"),
            })
        return {"deviceId": device_id, "weeks": history}

    def _rewards_or_none(self, reward_period: str) -> Any:
        try:
            return self.get_rewards(reward_period)
        except UnauthorizedError:
            raise
        except FleetProxyError as e:
            logger.warning(f"Rewards unavailable for {reward_period}: {e}")
            return None

    @staticmethod
    def _build_row(device: Dict[str, Any], location: Any, reward: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        location = location if isinstance(location, dict) else {}
        reward = reward or {}
        return {
            "id": device.get("id"),
            "name": (device.get("name") or "").strip(),
            "description": device.get("description") or "",
            "serialNumber": device.get("serialNumber") or "",
            "vehiclePlate": device.get("vehiclePlate") or "",
            "city": location.get("city") or "",
            "state": location.get("state") or "",
            "country": location.get("country") or "",
            "lastSeen": location.get("timestamp"),
            "honeyRewards": reward.get("rewardAmountHoney"),
            "mountRating": reward.get("rewardMountRating"),
        }
