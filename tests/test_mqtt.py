import pytest

from pmreport.config import DeviceInfo, Settings, ValueKey
from pmreport.mqtt import MqttPublisher, generate_topic

DEVICE = DeviceInfo(device="pm25", site="home", location="indoor", room="kitchen", device_id="unit-x")


class FakeClient:
    def __init__(self, connect_codes=(0,), is_connected=False, publish_ok=True):
        self._codes = list(connect_codes)
        self.is_connected = is_connected
        self.publish_ok = publish_ok
        self.connect_calls = 0
        self.disconnects = 0
        self.published = []

    def connected(self):
        return self.is_connected

    def connect(self):
        self.connect_calls += 1
        code = self._codes.pop(0) if self._codes else 1
        if code == 0:
            self.is_connected = True
        return code

    def disconnect(self):
        self.disconnects += 1

    def connect_error_string(self, code):
        return f"error {code}"

    def publish(self, topic, payload, retain=False):
        self.published.append((topic, payload, retain))
        return self.publish_ok


def make(client, sleeps=None):
    recorded = sleeps if sleeps is not None else []
    return MqttPublisher(client, DEVICE, Settings(), sleep=recorded.append)


def test_generate_topic_joins_parts():
    assert generate_topic(DEVICE, "aqi") == "home/indoor/kitchen/pm25/aqi"


def test_generate_topic_accepts_value_key():
    assert generate_topic(DEVICE, ValueKey.VOC) == "home/indoor/kitchen/pm25/vocIndex"


def test_connect_skips_when_already_connected():
    client = FakeClient(is_connected=True)
    assert make(client).connect() is True
    assert client.connect_calls == 0


def test_connect_retries_then_succeeds():
    client = FakeClient(connect_codes=(5, 5, 0))
    sleeps = []
    assert make(client, sleeps).connect() is True
    assert client.connect_calls == 3
    assert client.disconnects == 2
    assert sleeps == [Settings().connect_attempt_interval] * 2


def test_connect_gives_up_after_limit():
    client = FakeClient(connect_codes=(2, 2, 2, 2))
    sleeps = []
    assert make(client, sleeps).connect() is False
    assert client.connect_calls == Settings().connect_attempt_limit
    assert len(sleeps) == Settings().connect_attempt_limit


def test_zero_rssi_is_not_published():
    client = FakeClient()
    assert make(client).publish_rssi(0) is False
    assert client.published == []


def test_rssi_published_as_integer():
    client = FakeClient()
    assert make(client).publish_rssi(-60) is True
    assert client.published == [("home/indoor/kitchen/pm25/rssi", "-60", False)]


@pytest.mark.parametrize(
    "method, key, value",
    [
        ("publish_temperature", ValueKey.TEMPERATURE, 72.456),
        ("publish_humidity", ValueKey.HUMIDITY, 41.2),
        ("publish_pm25", ValueKey.PM25, 12.345),
        ("publish_aqi", ValueKey.AQI, 51.0),
        ("publish_voc_index", ValueKey.VOC, 100.0),
    ],
)
def test_sensor_values_published_to_their_topics(method, key, value):
    client = FakeClient()
    assert getattr(make(client), method)(value) is True
    (topic, payload, retain), = client.published
    assert topic == generate_topic(DEVICE, key)
    assert len(payload.split(".")[1]) == 2
    assert abs(float(payload) - value) <= 0.005
    assert retain is False


def test_publish_failure_reported():
    client = FakeClient(publish_ok=False)
    assert make(client).publish_aqi(10.0) is False
    assert len(client.published) == 1