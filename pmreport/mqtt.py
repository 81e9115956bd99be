"""Publish sensor and device readings to an MQTT broker."""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Protocol

from .config import DeviceInfo, Settings, ValueKey, debug_message


class MqttClient(Protocol):
    """The broker connection a publisher works through."""

    def connected(self) -> bool: ...

    def connect(self) -> int: ...

    def disconnect(self) -> None: ...

    def connect_error_string(self, code: int) -> str: ...

    def publish(self, topic: str, payload: str, retain: bool = False) -> bool: ...


def generate_topic(device: DeviceInfo, key: str | ValueKey) -> str:
    """Return the topic site/location/room/device/key for a value key."""
    name = key.value if isinstance(key, Enum) else str(key)
    topic = f"{device.site}/{device.location}/{device.room}/{device.device}/{name}"
    debug_message(f"Generated MQTT topic: {topic}", 2)
    return topic


def _format_payload(value: int | float) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return f"{float(value):.2f}"


class MqttPublisher:
    """Publishes individual readings, one topic per value, reconnecting as needed."""

    def __init__(
        self,
        client: MqttClient,
        device: DeviceInfo,
        settings: Settings | None = None,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self.client = client
        self.device = device
        self.settings = settings if settings is not None else Settings()
        self._sleep = sleep

    def connect(self) -> bool:
        """Make sure the broker is connected; return whether it is."""
        broker = self.settings.mqtt_broker
        if self.client.connected():
            debug_message(f"Already connected to MQTT broker {broker}", 2)
            return True
        limit = self.settings.connect_attempt_limit
        for attempt in range(1, limit + 1):
            code = self.client.connect()
            if code == 0:
                debug_message(f"Connected to MQTT broker {broker}", 2)
                return True
            self.client.disconnect()
            debug_message(
                f"MQTT connection attempt {attempt} of {limit} failed with error msg: "
                f"{self.client.connect_error_string(code)}",
                1,
            )
            self._sleep(self.settings.connect_attempt_interval)
        return False

    def _publish(self, key: ValueKey, value: int | float, label: str) -> bool:
        topic = generate_topic(self.device, key)
        self.connect()
        if self.client.publish(topic, _format_payload(value)):
            debug_message(f"MQTT publish: {label} succeeded", 1)
            return True
        debug_message(f"MQTT publish: {label} failed", 1)
        return False

    def publish_rssi(self, rssi: int) -> bool:
        """Publish the WiFi signal strength; a zero RSSI is not reported."""
        if rssi == 0:
            return False
        return self._publish(ValueKey.RSSI, int(rssi), "WiFi RSSI")

    def publish_temperature(self, temperature_f: float) -> bool:
        return self._publish(ValueKey.TEMPERATURE, float(temperature_f), "Temperature")

    def publish_humidity(self, humidity: float) -> bool:
        return self._publish(ValueKey.HUMIDITY, float(humidity), "Humidity")

    def publish_pm25(self, pm25: float) -> bool:
        return self._publish(ValueKey.PM25, float(pm25), "pm2.5")

    def publish_aqi(self, aqi: float) -> bool:
        return self._publish(ValueKey.AQI, float(aqi), "AQI")

    def publish_voc_index(self, voc_index: float) -> bool:
        return self._publish(ValueKey.VOC, float(voc_index), "VoC Index")