"""Test wemo_local config entry setup"""

import typing

from homeassistant.config_entries import ConfigEntryState
import pytest

from custom_components.wemo_local import const as mlc
from custom_components.wemo_local.devices import get_device_class
from custom_components.wemo_local.helpers.component_api import WemoApi

from tests import const as tc, helpers

if typing.TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


DEVICE_PLATFORMS = {
    mlc.DEVICE_TYPE_LIGHTSWITCH: {"switch"},
    mlc.DEVICE_TYPE_DIMMER: {"light"},
    mlc.DEVICE_TYPE_CROCKPOT: {"fan", "number", "sensor"},
    mlc.DEVICE_TYPE_HUMIDIFIER: {"humidifier", "fan", "sensor"},
    mlc.DEVICE_TYPE_PURIFIER: {"fan", "sensor"},
    mlc.DEVICE_TYPE_INSIGHT: {"fan", "sensor", "button"},
    mlc.DEVICE_TYPE_BRIDGE: {"light"},
}


@pytest.mark.parametrize("device_type", mlc.DEVICE_TYPE_OPTIONS)
async def test_device_entry(hass: "HomeAssistant", device_type: str):
    """Test a device config entry setup and unload for every device kind."""
    async with helpers.DeviceContext(
        hass, device_type, data={mlc.CONF_SUBDEVICES: [tc.MOCK_BULB_ID]}
    ) as context:
        assert isinstance(api := hass.data[mlc.DOMAIN], WemoApi)
        device = context.device
        assert type(device) is get_device_class(device_type)
        assert device.DEVICE_TYPE == device_type
        assert context.config_entry.runtime_data is device
        assert set(device.platforms) == DEVICE_PLATFORMS[device_type]
        assert list(api.active_devices()) == [device]
        # the initial refresh fills the cache
        assert device.cache or device_type == mlc.DEVICE_TYPE_BRIDGE
        for entity in device.managed_entities(next(iter(device.platforms))):
            assert hass.states.get(entity.entity_id)

    assert context.config_entry.state == ConfigEntryState.NOT_LOADED
    assert not list(api.active_devices())


async def test_device_entry_serial_mismatch(hass: "HomeAssistant"):
    entry_mock = helpers.ConfigEntryMocker(
        hass,
        "221517K0101770",
        "Wemo lightswitch",
        data={
            mlc.CONF_HOST: tc.MOCK_HOST,
            mlc.CONF_SERIAL: tc.MOCK_SERIALS[mlc.DEVICE_TYPE_LIGHTSWITCH],
            mlc.CONF_DEVICE_TYPE: mlc.DEVICE_TYPE_LIGHTSWITCH,
        },
        auto_setup=False,
    )
    async with entry_mock:
        assert not await entry_mock.async_setup()
        assert entry_mock.config_entry.state == ConfigEntryState.SETUP_ERROR


async def test_device_entry_unsupported_type(hass: "HomeAssistant"):
    serial = "221517K0101771"
    entry_mock = helpers.ConfigEntryMocker(
        hass,
        serial,
        "Wemo maker",
        data={
            mlc.CONF_HOST: tc.MOCK_HOST,
            mlc.CONF_SERIAL: serial,
            mlc.CONF_DEVICE_TYPE: "maker",
        },
        auto_setup=False,
    )
    async with entry_mock:
        assert not await entry_mock.async_setup()
        assert entry_mock.config_entry.state == ConfigEntryState.SETUP_ERROR


async def test_device_entry_remove(hass: "HomeAssistant", hass_storage):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_INSIGHT) as context:
        context.device.receive(
            "InsightParams", tc.insight_params(state=1, today_wm=6000000)
        )
    store_key = f"{mlc.DOMAIN}.context.{context.serial}"
    assert hass_storage[store_key]["data"]["total_energy"]
    assert context.serial in context.api.devices

    await hass.config_entries.async_remove(context.config_entry_id)
    await hass.async_block_till_done()
    assert store_key not in hass_storage
    assert context.serial not in context.api.devices
