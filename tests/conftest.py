"""Shared fixtures."""

import pytest
from fakes import FakeMetricSource, HubRecorder

from desktop_companion.config import DeviceSettings


@pytest.fixture
def fake_source() -> FakeMetricSource:
    return FakeMetricSource()


@pytest.fixture
def hub() -> HubRecorder:
    return HubRecorder()


@pytest.fixture
def configured_settings() -> DeviceSettings:
    return DeviceSettings(server_url="https://ha.local:8123/api/", access_token="  token-123 ")
