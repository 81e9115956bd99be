"""Report readings to Home Assistant over MQTT."""

from __future__ import annotations

import json
from typing import Any

from .config import DeviceInfo, Reading, debug_message

_DISCOVERY = (
    ("homeassistant/sensor/pm25-1T/config", "temperature", "Temperature", "°F",
     "{{ value_json.temperature}}"),
    ("homeassistant/sensor/pm25-1H/config", "humidity", "Humidity", "%",
     "{{ value_json.humidity}}"),
    ("homeassistant/sensor/pm25-1P/config", "pm25", "pm25", "ppm",
     "{{ value_json.co2}}"),
    ("homeassistant/sensor/pm25-1A/config", "aqi", "aqi", "hybrid",
     "{{ value_json.co2}}"),
    ("homeassistant/sensor/pm25-1C/config", "voc", "voc", "index",
     "{{ value_json.co2}}"),
)


def _dumps(document: dict[str, Any]) -> str:
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def state_topic(device: DeviceInfo) -> str:
    """Return the state topic Home Assistant reads this device's readings from."""
    return f"{device.site}/{device.device}/{device.device_id}/state"


def discovery_configs(device: DeviceInfo) -> list[tuple[str, dict[str, str]]]:
    """Return (config topic, sensor config) pairs for auto-discovery."""
    topic = state_topic(device)
    return [
        (
            config_topic,
            {
                "device_class": device_class,
                "name": name,
                "state_topic": topic,
                "unit_of_measurement": unit,
                "value_template": template,
            },
        )
        for config_topic, device_class, name, unit, template in _DISCOVERY
    ]


def setup_discovery(client: Any, device: DeviceInfo) -> bool:
    """Publish every sensor config as a retained message; return whether all succeeded."""
    debug_message("Configuring PM25 for Home Assistant MQTT auto-discovery", 1)
    ok = True
    for topic, config in discovery_configs(device):
        payload = _dumps(config)
        debug_message(payload, 1)
        ok = bool(client.publish(topic, payload, retain=True)) and ok
    return ok


def state_payload(reading: Reading) -> str:
    """Return the JSON state document for a reading."""
    return _dumps(
        {
            "temperatureF": reading.temperature_f,
            "humidity": reading.humidity,
            "aqi": reading.aqi,
            "pm25": reading.pm25,
            "voc": reading.voc_index,
        }
    )


def publish_state(client: Any, device: DeviceInfo, reading: Reading) -> bool:
    """Publish a reading to the device state topic; return whether it was accepted."""
    topic = state_topic(device)
    debug_message("Publishing RCO2 values to Home Assistant via MQTT (topic below)", 1)
    debug_message(topic, 1)
    payload = state_payload(reading)
    debug_message(payload, 1)
    return bool(client.publish(topic, payload))