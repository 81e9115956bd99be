"""Post sensor readings to the dweet service."""

from __future__ import annotations

import json
import socket
from contextlib import closing
from typing import Any, Callable

from .config import Reading, Settings, debug_message

DWEET_HOST = "dweet.io"
DWEET_PORT = 80
USER_AGENT = "ESP32/ESP8266 (orangemoose)/1.0"
RESPONSE_WAIT = 1.5


def build_dweet_payload(reading: Reading, rssi: int, address: str) -> str:
    """Return the JSON payload, every value rendered as a string."""
    values = {
        "wifi_rssi": str(rssi),
        "AQI": f"{reading.aqi:.2f}",
        "address": address,
        "temperature": f"{reading.temperature_f:.1f}",
        "vocIndex": f"{reading.voc_index:.1f}",
        "humidity": f"{reading.humidity:.1f}",
        "PM25_value": f"{reading.pm25:.2f}",
        "min_AQI": f"{reading.min_aqi:.2f}",
        "max_AQI": f"{reading.max_aqi:.2f}",
    }
    return json.dumps(values, separators=(",", ":"), ensure_ascii=False)


def build_dweet_request(device: str, payload: str) -> bytes:
    """Return the raw HTTP POST request publishing payload for device."""
    body = payload.encode("utf-8")
    head = "\r\n".join(
        [
            f"POST /dweet/for/{device} HTTP/1.1",
            f"Host: {DWEET_HOST}",
            f"User-Agent: {USER_AGENT}",
            "Cache-Control: no-cache",
            "Content-Type: application/json",
            f"Content-Length: {len(body)}",
            "",
            "",
        ]
    )
    return head.encode("ascii") + body + b"\r\n"


def _log_response(conn: Any) -> None:
    settimeout = getattr(conn, "settimeout", None)
    if settimeout is not None:
        settimeout(RESPONSE_WAIT)
    chunks = []
    try:
        while chunk := conn.recv(4096):
            chunks.append(chunk)
    except OSError:
        pass
    debug_message("Dweet server response:", 2)
    for line in b"".join(chunks).decode("utf-8", "replace").split("\r"):
        debug_message(line, 2)
    debug_message("-----", 2)


def post_dweet(
    settings: Settings,
    reading: Reading,
    rssi: int,
    address: str,
    connection_factory: Callable[[tuple[str, int]], Any] = socket.create_connection,
) -> bool:
    """Send a reading to dweet; return whether the request was sent."""
    try:
        conn = connection_factory((settings.dweet_host, DWEET_PORT))
    except OSError:
        debug_message("Dweet connection failed!", 1)
        return False
    payload = build_dweet_payload(reading, rssi, address)
    with closing(conn):
        try:
            conn.sendall(build_dweet_request(settings.dweet_device, payload))
        except OSError:
            debug_message("Dweet connection failed!", 1)
            return False
        debug_message("Dweet POST:", 1)
        debug_message(payload, 1)
        _log_response(conn)
    return True