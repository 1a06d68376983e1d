"""Global fixtures for wemo_local integration."""

# pytest_homeassistant_custom_component provides some fixtures that are provided by
# Home Assistant core. You can find those fixture definitions here:
# https://github.com/MatthewFlamm/pytest-homeassistant-custom-component/blob/master/pytest_homeassistant_custom_component/common.py
from unittest.mock import patch

import pytest

from custom_components.wemo_local import const as mlc
from custom_components.wemo_local.devices.crockpot import CrockpotDevice
from custom_components.wemo_local.devices.dimmer import DimmerDevice
from custom_components.wemo_local.devices.hub import LinkBulb
from custom_components.wemo_local.devices.humidifier import HumidifierDevice

from . import helpers

pytest_plugins = "pytest_homeassistant_custom_component"

# short (real) delays so that tests can 'await' through debounce and revert
TEST_SETTLE_DELAY = 0.05
TEST_REVERT_DELAY = 0.1


# Test initialization must ensure custom_components are enabled
@pytest.fixture(autouse=True)
def auto_enable(request: pytest.FixtureRequest):
    hass = request.getfixturevalue("hass")
    hass.data.pop("custom_components")
    yield


@pytest.fixture(name="skip_notifications", autouse=True)
def skip_notifications_fixture():
    """Skip notification calls."""
    with (
        patch("homeassistant.components.persistent_notification.async_create"),
        patch("homeassistant.components.persistent_notification.async_dismiss"),
    ):
        yield


@pytest.fixture(name="fast_delays")
def fast_delays_fixture():
    """Shrinks debounce and revert delays so tests run in (real) milliseconds."""
    with (
        patch.object(mlc, "PARAM_REVERT_DELAY", TEST_REVERT_DELAY),
        patch.object(CrockpotDevice, "SETTLE_DELAY", TEST_SETTLE_DELAY),
        patch.object(HumidifierDevice, "SETTLE_DELAY", TEST_SETTLE_DELAY),
        patch.object(DimmerDevice, "STATE_SETTLE_DELAY", TEST_SETTLE_DELAY),
        patch.object(DimmerDevice, "BRIGHTNESS_SETTLE_DELAY", TEST_SETTLE_DELAY),
        patch.object(LinkBulb, "LEVEL_SETTLE_DELAY", TEST_SETTLE_DELAY),
    ):
        yield


@pytest.fixture(name="no_delays")
def no_delays_fixture():
    """Disables debounce so that time can be frozen (see TimeMocker)."""
    with (
        patch.object(CrockpotDevice, "SETTLE_DELAY", 0),
        patch.object(HumidifierDevice, "SETTLE_DELAY", 0),
        patch.object(DimmerDevice, "STATE_SETTLE_DELAY", 0),
        patch.object(DimmerDevice, "BRIGHTNESS_SETTLE_DELAY", 0),
        patch.object(LinkBulb, "LEVEL_SETTLE_DELAY", 0),
    ):
        yield


@pytest.fixture()
def time_mock(hass):
    with helpers.TimeMocker(hass) as _time_mock:
        yield _time_mock
