# pmreport

Helpers for an indoor air-quality station. They take averaged PM2.5, AQI,
VOC index, temperature and humidity readings and send them to these
services:

- **InfluxDB**: line-protocol points tagged with device, site, location and room
- **MQTT**: one topic per value, `site/location/room/device/<key>`
- **Home Assistant**: MQTT discovery configs and a JSON state payload
- **Dweet**: a JSON POST for a named dweet device
- **ThingSpeak**: a form-encoded channel update

The package has no runtime dependencies.

## Installing

```
pip install .
```

## Configuration

`pmreport.config.Settings` is a dataclass. It holds:

- the debug level (0, 1 or 2)
- the client id and WiFi SSID
- the device identity (`DeviceInfo`)
- the Dweet host and device name
- the ThingSpeak host, channel id and API key
- the MQTT broker name
- the InfluxDB measurement names
- the connection attempt limit and interval
- the hardware error interval

Invalid debug levels, attempt limits below 1 and negative intervals raise
`ValueError`.

`Settings.from_mapping(mapping)` builds settings from a plain mapping.

- Keys are case-insensitive.
- The keys `device`, `device_site`, `device_location`, `device_room` and
  `device_id` fill in the `DeviceInfo`.
- Integer settings are converted with `int`.
- An unknown key raises `ValueError`.

```python
from pmreport.config import Settings

settings = Settings.from_mapping({
    "DEVICE": "pm25",
    "DEVICE_SITE": "home",
    "DEVICE_LOCATION": "indoor",
    "DEVICE_ROOM": "kitchen",
    "THINGSPEAK_API_KEY": "placeholder",
    "DEBUG": 1,
})
```

Two methods give the intervals:

| Method | Unit | Debug on | Debug off |
|---|---|---|---|
| `sample_interval()` | seconds | 30 | 60 |
| `report_interval()` | minutes | 2 | 30 |

`DeviceInfo.tags()` returns the non-empty device attributes, keyed by the
`TagKey` values `device`, `site`, `location` and `room`.

A set of averaged values is a `Reading` with these fields:

- `pm25`
- `aqi`
- `temperature_f`
- `voc_index`
- `humidity`
- `min_aqi`
- `max_aqi`

Field names come from `ValueKey`: `temperature`, `humidity`, `pm25`, `aqi`,
`vocIndex` and `rssi`.

### Debug output

`pmreport.config.debug_message(text, level)` logs `text` at INFO level on
the `pmreport` logger. It does so only when `level` is 1 or more and no
higher than the level set with `configure_debug(level)`. Level 1 is a
summary and level 2 is verbose. It returns whether the message was logged.
To see the messages, configure `logging`, for example with
`logging.basicConfig(level=logging.INFO)`.

## InfluxDB

`pmreport.influx.Point` builds one data point.

- Add tags with `add_tag` and fields with `add_field`. Both can be chained.
- `to_line_protocol()` renders the point as one line of line protocol.
- In that line, integers get an `i` suffix, floats use `repr`, booleans
  become `true` or `false`, and strings are quoted.

`pmreport.influx.InfluxClient` talks to the server over HTTP using
`urllib`. Configure it for one of two server versions:

- **1.x**: pass `database`, and optionally `user` and `password`.
- **2.x**: pass `org`, `bucket` and `token`.

`validate_connection()` pings `/ping`. `write_point(point)` posts to
`/write` or `/api/v2/write`. Both return a bool. After a failure,
`last_error_message` says what went wrong.

```python
from pmreport.config import Reading
from pmreport.influx import InfluxClient, post_influx

client = InfluxClient("http://localhost:8086", org="home", bucket="air", token="token")
reading = Reading(pm25=4.2, aqi=17.5, temperature_f=71.3, voc_index=102.0,
                  humidity=41.0, min_aqi=12.0, max_aqi=21.0)
ok = post_influx(settings, client, reading, rssi=-61)
```

`post_influx` behaves as follows:

- It returns `False` at once when `rssi` is 0.
- Otherwise it calls `validate_connection` up to `connect_attempt_limit`
  times. After each failed attempt it calls `sleep` with
  `connect_attempt_interval`. The default for `sleep` is `time.sleep`.
- Once connected, it writes an environment point and a device point. The
  environment point carries pm25, aqi, temperature, humidity and vocIndex.
  The device point carries rssi.
- It returns `True` only if both writes succeeded.

## MQTT

`pmreport.mqtt.generate_topic(device, key)` returns
`site/location/room/device/key`.

`pmreport.mqtt.MqttPublisher(client, device, settings=None, sleep=time.sleep)`
publishes each value to its own topic. The `client` is supplied by you and
must provide these methods:

- `connected()`
- `connect()`, which returns 0 on success or an error code
- `disconnect()`
- `connect_error_string(code)`
- `publish(topic, payload, retain=False)`

`MqttPublisher.connect()` returns `True` straight away if the client is
already connected. Otherwise it retries up to the attempt limit, sleeping
between attempts.

Each publish method connects first, then publishes, and returns whether
the publish succeeded:

- `publish_rssi`
- `publish_temperature`
- `publish_humidity`
- `publish_pm25`
- `publish_aqi`
- `publish_voc_index`

Floats are sent with two decimals. The RSSI is sent as an integer, and an
RSSI of 0 is not published.

## Home Assistant

These functions live in `pmreport.hassio`:

- `state_topic(device)` returns `site/device/device_id/state`.
- `state_payload(reading)` returns the JSON state document. Its keys are
  `temperatureF`, `humidity`, `aqi`, `pm25` and `voc`.
- `publish_state(client, device, reading)` publishes the state document.
- `discovery_configs(device)` lists the sensor discovery configs.
- `setup_discovery(client, device)` publishes every config as a retained
  message.

Both publishing functions need a `client` with
`publish(topic, payload, retain=False)`.

## Dweet and ThingSpeak

Each module has builders that return the exact text sent:

- `pmreport.dweet`: `build_dweet_payload` and `build_dweet_request`
- `pmreport.thingspeak`: `build_thingspeak_body` and
  `build_thingspeak_request`

`post_dweet(settings, reading, rssi, address)` and
`post_thingspeak(settings, reading)` send raw HTTP/1.1 POST requests on
port 80. Each works as follows:

- The connection comes from `connection_factory`. The default is
  `socket.create_connection`.
- The server's reply is read with a 1.5 second timeout and logged at debug
  level 2.
- The function returns `False` if connecting or sending fails.

## What this package does not do

pmreport only formats and sends readings it is given. It does not:

- read a particulate or environment sensor
- average samples or run a sampling and reporting loop
- drive a display
- join a WiFi network

It does not include an MQTT network client. Pass in an object with the
methods listed above. It provides no command-line program.

## Running the tests

```
pip install .[test]
pytest
```