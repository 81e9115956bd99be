"""Write sensor and device readings to InfluxDB using line protocol."""

from __future__ import annotations

import time
import urllib.error
import urllib.request
from typing import Any, Callable
from urllib.parse import urlencode

from .config import Reading, Settings, ValueKey, debug_message


def _escape(text: str, specials: str) -> str:
    return "".join(f"\\{ch}" if ch in specials else ch for ch in text)


def _format_field(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return '"' + _escape(value, '"\\') + '"'
    raise TypeError(f"unsupported field value type: {type(value).__name__}")


class Point:
    """A single InfluxDB data point: measurement, tags and fields."""

    def __init__(self, measurement: str) -> None:
        if not measurement:
            raise ValueError("measurement must not be empty")
        self.measurement = measurement
        self.tags: dict[str, str] = {}
        self.fields: dict[str, Any] = {}

    def add_tag(self, key: str, value: str) -> "Point":
        if not key or not value:
            raise ValueError("tag key and value must not be empty")
        self.tags[key] = value
        return self

    def add_field(self, key: str, value: Any) -> "Point":
        if not key:
            raise ValueError("field key must not be empty")
        _format_field(value)
        self.fields[key] = value
        return self

    def clear_fields(self) -> None:
        self.fields.clear()

    def to_line_protocol(self) -> str:
        """Render the point as one line of InfluxDB line protocol."""
        if not self.fields:
            raise ValueError("a point needs at least one field")
        head = _escape(self.measurement, ", ")
        tags = "".join(
            f",{_escape(k, ',= ')}={_escape(v, ',= ')}" for k, v in self.tags.items()
        )
        fields = ",".join(f"{_escape(k, ',= ')}={_format_field(v)}" for k, v in self.fields.items())
        return f"{head}{tags} {fields}"


class InfluxClient:
    """HTTP client for an InfluxDB 1.x database or 2.x bucket."""

    def __init__(
        self,
        url: str,
        *,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        org: str | None = None,
        bucket: str | None = None,
        token: str | None = None,
        opener: Callable[..., Any] = urllib.request.urlopen,
        timeout: float = 5.0,
    ) -> None:
        is_v1 = database is not None
        is_v2 = org is not None or bucket is not None or token is not None
        if is_v1 == is_v2:
            raise ValueError("configure either a v1 database or a v2 org/bucket/token")
        if is_v2 and not (org and bucket and token):
            raise ValueError("v2 servers need org, bucket and token")
        self.server_url = url.rstrip("/")
        self._database = database
        self._user = user
        self._password = password
        self._org = org
        self._bucket = bucket
        self._token = token
        self._opener = opener
        self._timeout = timeout
        self.last_error_message = ""

    def _write_url(self) -> str:
        if self._database is not None:
            params = {"db": self._database}
            if self._user:
                params["u"] = self._user
            if self._password:
                params["p"] = self._password
            return f"{self.server_url}/write?{urlencode(params)}"
        params = {"org": self._org, "bucket": self._bucket}
        return f"{self.server_url}/api/v2/write?{urlencode(params)}"

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Token {self._token}"}
        return {}

    def _send(self, request: urllib.request.Request) -> bool:
        try:
            with self._opener(request, timeout=self._timeout) as response:
                status = response.status
        except urllib.error.HTTPError as exc:
            self.last_error_message = f"HTTP {exc.code}: {exc.reason}"
            return False
        except (urllib.error.URLError, OSError) as exc:
            self.last_error_message = str(exc)
            return False
        if 200 <= status < 300:
            self.last_error_message = ""
            return True
        self.last_error_message = f"HTTP {status}"
        return False

    def validate_connection(self) -> bool:
        """Ping the server; return whether it answered successfully."""
        request = urllib.request.Request(
            f"{self.server_url}/ping", headers=self._headers(), method="GET"
        )
        return self._send(request)

    def write_point(self, point: Point) -> bool:
        """Write one point; return whether the server accepted it."""
        headers = {"Content-Type": "text/plain; charset=utf-8", **self._headers()}
        request = urllib.request.Request(
            self._write_url(),
            data=point.to_line_protocol().encode("utf-8"),
            headers=headers,
            method="POST",
        )
        return self._send(request)


def _write(client: Any, point: Point) -> bool:
    if client.write_point(point):
        debug_message(f"InfluxDB write success: {point.to_line_protocol()}", 1)
        return True
    debug_message(f"InfluxDB write failed: {client.last_error_message}", 1)
    return False


def post_influx(
    settings: Settings,
    client: Any,
    reading: Reading,
    rssi: int,
    sleep: Callable[[float], Any] = time.sleep,
) -> bool:
    """Store a reading and the device RSSI; return whether both writes succeeded."""
    if rssi == 0:
        return False

    env_point = Point(settings.influx_env_measurement)
    dev_point = Point(settings.influx_dev_measurement)
    for key, value in settings.device.tags().items():
        env_point.add_tag(key, value)
        dev_point.add_tag(key, value)

    limit = settings.connect_attempt_limit
    connected = False
    for attempt in range(1, limit + 1):
        if client.validate_connection():
            debug_message(f"Connected to InfluxDB: {client.server_url}", 1)
            connected = True
            break
        debug_message(
            f"influxDB connection attempt {attempt} of {limit} failed with error msg: "
            f"{client.last_error_message}",
            1,
        )
        sleep(settings.connect_attempt_interval)
    if not connected:
        return False

    env_point.add_field(ValueKey.PM25.value, float(reading.pm25))
    env_point.add_field(ValueKey.AQI.value, float(reading.aqi))
    env_point.add_field(ValueKey.TEMPERATURE.value, float(reading.temperature_f))
    env_point.add_field(ValueKey.HUMIDITY.value, float(reading.humidity))
    env_point.add_field(ValueKey.VOC.value, float(reading.voc_index))
    env_ok = _write(client, env_point)

    dev_point.add_field(ValueKey.RSSI.value, int(rssi))
    dev_ok = _write(client, dev_point)
    return env_ok and dev_ok