[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pmreport"
version = "0.1.0"
description = "Format and send air-quality sensor readings to InfluxDB, MQTT, Home Assistant, Dweet and ThingSpeak"
requires-python = ">=3.10"
dependencies = []
keywords = ["air quality", "pm2.5", "aqi", "influxdb", "mqtt", "home assistant", "thingspeak", "dweet"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Topic :: Scientific/Engineering :: Atmospheric Science",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pmreport"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
