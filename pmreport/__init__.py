"""Format and send air-quality readings to InfluxDB, MQTT, Home Assistant, Dweet and ThingSpeak."""

__version__ = "0.1.0"
__all__ = ["config", "dweet", "thingspeak", "influx", "mqtt", "hassio"]