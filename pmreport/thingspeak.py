"""Upload sensor readings to a ThingSpeak channel."""

from __future__ import annotations

import socket
from contextlib import closing
from typing import Any, Callable

from .config import Reading, Settings, debug_message

THINGSPEAK_HOST = "api.thingspeak.com"
THINGSPEAK_PORT = 80
USER_AGENT = "ESP32/ESP8266 (orangemoose)/1.0"
RESPONSE_WAIT = 1.5


def build_thingspeak_body(reading: Reading) -> str:
    """Return the form-encoded channel update body."""
    fields = (reading.aqi, reading.pm25, reading.max_aqi, reading.min_aqi)
    return "&".join(f"field{number}={value:.2f}" for number, value in enumerate(fields, start=1))


def build_thingspeak_request(api_key: str, body: str) -> bytes:
    """Return the raw HTTP POST request carrying body."""
    encoded = body.encode("utf-8")
    head = "\r\n".join(
        [
            "POST /update HTTP/1.1",
            f"Host: {THINGSPEAK_HOST}",
            f"User-Agent: {USER_AGENT}",
            "Connection: close",
            f"X-THINGSPEAKAPIKEY: {api_key}",
            "Content-Type: application/x-www-form-urlencoded",
            f"Content-Length: {len(encoded)}",
            "",
            "",
        ]
    )
    return head.encode("utf-8") + encoded


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
    debug_message("ThingSpeak server response:", 2)
    for line in b"".join(chunks).decode("utf-8", "replace").split("\r"):
        debug_message(line, 2)
    debug_message("-----", 2)


def post_thingspeak(
    settings: Settings,
    reading: Reading,
    connection_factory: Callable[[tuple[str, int]], Any] = socket.create_connection,
) -> bool:
    """Send a channel update; return whether the request was sent."""
    try:
        conn = connection_factory((settings.thingspeak_host, THINGSPEAK_PORT))
    except OSError:
        debug_message("ThingSpeak connection failed!", 1)
        return False
    body = build_thingspeak_body(reading)
    with closing(conn):
        try:
            conn.sendall(build_thingspeak_request(settings.thingspeak_api_key, body))
        except OSError:
            debug_message("ThingSpeak connection failed!", 1)
            return False
        debug_message("ThingSpeak POST:", 1)
        debug_message(body, 1)
        _log_response(conn)
    return True