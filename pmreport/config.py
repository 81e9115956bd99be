"""Device settings, data naming scheme, sensor readings and debug output."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger("pmreport")


class ValueKey(str, Enum):
    """Keys naming stored sensor and device values (InfluxDB fields, MQTT topic parts)."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PM25 = "pm25"
    AQI = "aqi"
    VOC = "vocIndex"
    RSSI = "rssi"


class TagKey(str, Enum):
    """Keys under which device attributes are stored as InfluxDB tags."""

    DEVICE = "device"
    SITE = "site"
    LOCATION = "location"
    ROOM = "room"


@dataclass(frozen=True)
class DeviceInfo:
    """Identity of the reporting device and where it is installed."""

    device: str = ""
    site: str = ""
    location: str = ""
    room: str = ""
    device_id: str = ""

    def tags(self) -> dict[str, str]:
        """Return the non-empty device attributes keyed by their tag keys."""
        candidates = (
            (TagKey.DEVICE, self.device),
            (TagKey.SITE, self.site),
            (TagKey.LOCATION, self.location),
            (TagKey.ROOM, self.room),
        )
        return {key.value: value for key, value in candidates if value}


_DEVICE_KEYS = {
    "device": "device",
    "device_site": "site",
    "device_location": "location",
    "device_room": "room",
    "device_id": "device_id",
}

_INT_FIELDS = frozenset(
    {
        "debug",
        "thingspeak_channel_id",
        "connect_attempt_limit",
        "connect_attempt_interval",
        "hardware_error_interval",
    }
)

_DEBUG_LEVELS = (0, 1, 2)


@dataclass
class Settings:
    """Configuration for sampling, reporting and the network endpoints."""

    debug: int = 0
    client_id: str = "PM25_kitchen"
    wifi_ssid: str = ""
    device: DeviceInfo = field(default_factory=DeviceInfo)
    dweet_host: str = "dweet.io"
    dweet_device: str = "makerhour-pm25"
    thingspeak_host: str = "api.thingspeak.com"
    thingspeak_channel_id: int = 0
    thingspeak_api_key: str = ""
    mqtt_broker: str = ""
    influx_env_measurement: str = "weather"
    influx_dev_measurement: str = "device"
    connect_attempt_limit: int = 3
    connect_attempt_interval: int = 10
    hardware_error_interval: int = 10

    def __post_init__(self) -> None:
        if self.debug not in _DEBUG_LEVELS:
            raise ValueError(f"debug level must be one of {_DEBUG_LEVELS}, got {self.debug}")
        if self.connect_attempt_limit < 1:
            raise ValueError("connect_attempt_limit must be at least 1")
        if self.connect_attempt_interval < 0 or self.hardware_error_interval < 0:
            raise ValueError("intervals must not be negative")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Settings":
        """Build settings from a mapping of case-insensitive names to values."""
        names = {f.name for f in fields(cls)} - {"device"}
        device_values: dict[str, str] = {}
        values: dict[str, Any] = {}
        for raw_key, value in mapping.items():
            key = str(raw_key).lower()
            if key in _DEVICE_KEYS:
                device_values[_DEVICE_KEYS[key]] = str(value)
            elif key in names:
                values[key] = int(value) if key in _INT_FIELDS else str(value)
            else:
                raise ValueError(f"unknown setting: {raw_key}")
        return cls(device=DeviceInfo(**device_values), **values)

    def sample_interval(self) -> int:
        """Seconds between sensor samples."""
        return 30 if self.debug else 60

    def report_interval(self) -> int:
        """Minutes between averaged reports."""
        return 2 if self.debug else 30


@dataclass(frozen=True)
class Reading:
    """An averaged set of sensor values ready to be reported."""

    pm25: float
    aqi: float
    temperature_f: float
    voc_index: float
    humidity: float
    min_aqi: float
    max_aqi: float


@dataclass
class _DebugState:
    level: int = 0


_debug = _DebugState()


def configure_debug(level: int) -> None:
    """Set the debug output level: 0 off, 1 summary, 2 verbose."""
    if level not in _DEBUG_LEVELS:
        raise ValueError(f"debug level must be one of {_DEBUG_LEVELS}, got {level}")
    _debug.level = level


def debug_message(text: str, level: int) -> bool:
    """Log text if the configured debug level covers it; return whether it was logged."""
    if level < 1 or level > _debug.level:
        return False
    logger.info("%s", text)
    return True