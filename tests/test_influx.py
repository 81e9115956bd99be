import urllib.error

import pytest

from pmreport.config import DeviceInfo, Reading, Settings
from pmreport.influx import InfluxClient, Point, post_influx


@pytest.fixture
def reading():
    return Reading(pm25=10.5, aqi=44.0, temperature_f=72.5, voc_index=120.0,
                   humidity=38.0, min_aqi=30.0, max_aqi=50.0)


@pytest.fixture
def settings():
    return Settings(device=DeviceInfo(device="pm25", site="home", location="indoor", room="kitchen"))


class FakeClient:
    def __init__(self, connect_results, write_results=None):
        self._connect = list(connect_results)
        self._write = list(write_results or [])
        self.points = []
        self.server_url = "http://localhost:8086"
        self.last_error_message = "refused"

    def validate_connection(self):
        return self._connect.pop(0)

    def write_point(self, point):
        self.points.append(point.to_line_protocol())
        return self._write.pop(0) if self._write else True


class FakeResponse:
    def __init__(self, status):
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class RecordingOpener:
    def __init__(self, status=204, error=None):
        self.requests = []
        self._status = status
        self._error = error

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return FakeResponse(self._status)


def test_line_protocol_basic():
    point = Point("weather").add_tag("room", "kitchen").add_field("pm25", 1.5)
    assert point.to_line_protocol() == "weather,room=kitchen pm25=1.5"


def test_line_protocol_integer_and_escaping():
    point = Point("device").add_tag("room", "my room").add_field("rssi", -60)
    assert point.to_line_protocol() == "device,room=my\\ room rssi=-60i"


def test_clear_fields_keeps_tags():
    point = Point("weather").add_tag("site", "home").add_field("aqi", 2.0)
    point.clear_fields()
    point.add_field("aqi", 3.0)
    assert point.to_line_protocol() == "weather,site=home aqi=3.0"


def test_point_without_fields_rejected():
    with pytest.raises(ValueError):
        Point("weather").to_line_protocol()


def test_bad_field_type_rejected():
    with pytest.raises(TypeError):
        Point("weather").add_field("x", [1])


def test_rssi_zero_skips_everything(settings, reading):
    client = FakeClient([])
    assert post_influx(settings, client, reading, 0, lambda s: None) is False
    assert client.points == []


def test_connection_retries_then_gives_up(settings, reading):
    client = FakeClient([False, False, False])
    sleeps = []
    assert post_influx(settings, client, reading, -55, sleeps.append) is False
    assert sleeps == [settings.connect_attempt_interval] * settings.connect_attempt_limit
    assert client.points == []


def test_successful_post_writes_both_points(settings, reading):
    client = FakeClient([False, True])
    sleeps = []
    assert post_influx(settings, client, reading, -55, sleeps.append) is True
    assert len(sleeps) == 1
    env, dev = client.points
    assert env.startswith("weather,device=pm25,site=home,location=indoor,room=kitchen ")
    assert "vocIndex=120.0" in env
    assert "pm25=10.5" in env
    assert dev.startswith("device,device=pm25")
    assert dev.endswith("rssi=-55i")


def test_failed_write_reports_failure_but_writes_device(settings, reading):
    client = FakeClient([True], [False, True])
    assert post_influx(settings, client, reading, -40, lambda s: None) is False
    assert len(client.points) == 2


def test_client_requires_one_server_version():
    with pytest.raises(ValueError):
        InfluxClient("http://localhost:8086")
    with pytest.raises(ValueError):
        InfluxClient("http://localhost:8086", database="db", org="org", bucket="b", token="token")


def test_v1_write_request():
    opener = RecordingOpener()
    password = "password"
    client = InfluxClient("http://localhost:8086/", database="env", user="user",
                          password=password, opener=opener)
    assert client.write_point(Point("weather").add_field("aqi", 1.0)) is True
    request = opener.requests[0]
    assert request.full_url.startswith("http://localhost:8086/write?")
    assert "db=env" in request.full_url
    assert request.data == b"weather aqi=1.0"
    assert request.get_method() == "POST"


def test_v2_write_uses_token_header():
    opener = RecordingOpener()
    client = InfluxClient("http://localhost:8086", org="home", bucket="sensors",
                          token="token", opener=opener)
    assert client.write_point(Point("weather").add_field("aqi", 1.0)) is True
    request = opener.requests[0]
    assert "/api/v2/write?" in request.full_url
    assert "bucket=sensors" in request.full_url
    assert request.get_header("Authorization") == "Token token"


def test_validate_connection_pings():
    opener = RecordingOpener()
    client = InfluxClient("http://localhost:8086", database="env", opener=opener)
    assert client.validate_connection() is True
    assert opener.requests[0].full_url == "http://localhost:8086/ping"


def test_validate_connection_failure_sets_message():
    opener = RecordingOpener(error=urllib.error.URLError("refused"))
    client = InfluxClient("http://localhost:8086", database="env", opener=opener)
    assert client.validate_connection() is False
    assert "refused" in client.last_error_message


def test_non_success_status_is_failure():
    opener = RecordingOpener(status=500)
    client = InfluxClient("http://localhost:8086", database="env", opener=opener)
    assert client.write_point(Point("weather").add_field("aqi", 1.0)) is False
    assert "500" in client.last_error_message