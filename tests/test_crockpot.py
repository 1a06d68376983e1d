"""Test the crockpot modes and cook time handling"""

import asyncio
import logging

from homeassistant.components import fan, number, sensor
from homeassistant.const import ATTR_ENTITY_ID, STATE_OFF, STATE_ON
from homeassistant.exceptions import HomeAssistantError
import pytest

from custom_components.wemo_local import const as mlc
from custom_components.wemo_local.devices.crockpot import (
    MODE_HIGH,
    MODE_LOW,
    MODE_OFF,
    MODE_WARM,
)
from custom_components.wemo_local.wemoclient import const as wc

from tests import helpers


def _mode_payload(mode: int, minutes: int):
    return {wc.KEY_MODE: mode, wc.KEY_TIME: minutes}


async def test_crockpot_setup(hass):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        assert context.device.cache == {wc.KEY_MODE: MODE_OFF, wc.KEY_TIME: 0}
        assert context.state(fan.DOMAIN, "heat").state == STATE_OFF
        assert context.state(sensor.DOMAIN, "mode").state == "off"
        assert float(context.state(number.DOMAIN, "cook_time").state) == 0


async def test_crockpot_speed_is_quantized(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        transport = context.transport
        device = context.device
        await hass.services.async_call(
            fan.DOMAIN,
            fan.SERVICE_SET_PERCENTAGE,
            {
                ATTR_ENTITY_ID: context.entity_id(fan.DOMAIN, "heat"),
                fan.ATTR_PERCENTAGE: 40,
            },
            blocking=True,
        )
        assert transport.payloads(wc.ACTION_SETCROCKPOTSTATE) == [
            _mode_payload(MODE_WARM, 0)
        ]
        # the canonical bucket value is shown, not the requested one
        assert device.fan.percentage == 33
        state = context.state(fan.DOMAIN, "heat")
        assert state.state == STATE_ON
        assert state.attributes[fan.ATTR_PERCENTAGE] == 33
        assert context.state(sensor.DOMAIN, "mode").state == "warm"
        # a refresh confirming the mode changes nothing
        transport.responses[wc.ACTION_GETCROCKPOTSTATE] = {
            wc.KEY_MODE: str(MODE_WARM),
            wc.KEY_TIME: "0",
        }
        await device.async_request_refresh()
        assert device.fan.percentage == 33
        # another value in the same bucket doesn't reach the device
        await device.async_request_percentage(45)
        assert len(transport.payloads(wc.ACTION_SETCROCKPOTSTATE)) == 1
        assert device.fan.percentage == 33


async def test_crockpot_debounce(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        transport = context.transport
        device = context.device
        await asyncio.gather(
            device.async_request_percentage(100),
            device.async_request_percentage(30),
            device.async_request_percentage(60),
        )
        assert transport.payloads(wc.ACTION_SETCROCKPOTSTATE) == [
            _mode_payload(MODE_LOW, 0)
        ]
        assert device.cache[wc.KEY_MODE] == MODE_LOW


async def test_crockpot_cook_time(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        transport = context.transport
        device = context.device
        await hass.services.async_call(
            number.DOMAIN,
            number.SERVICE_SET_VALUE,
            {
                ATTR_ENTITY_ID: context.entity_id(number.DOMAIN, "cook_time"),
                number.ATTR_VALUE: 2,
            },
            blocking=True,
        )
        # the timer only runs when cooking: switches to 'low'
        assert transport.payloads(wc.ACTION_SETCROCKPOTSTATE) == [
            _mode_payload(MODE_LOW, 120)
        ]
        assert device.fan.percentage == 66
        assert float(context.state(sensor.DOMAIN, "time_remaining").state) == 2

        # the device doesn't accept 24 h
        await device.async_request_cook_time(24)
        assert transport.payloads(wc.ACTION_SETCROCKPOTSTATE)[-1] == _mode_payload(
            MODE_LOW, 1410
        )
        assert device.cook_time.native_value == 23.5


async def test_crockpot_off_zeroes_time(hass, fast_delays):
    async with helpers.DeviceContext(
        hass,
        mlc.DEVICE_TYPE_CROCKPOT,
        responses={
            wc.ACTION_GETCROCKPOTSTATE: {
                wc.KEY_MODE: str(MODE_HIGH),
                wc.KEY_TIME: "240",
            }
        },
    ) as context:
        device = context.device
        assert device.time_remaining.native_value == 4
        # externally triggered off
        device.receive(wc.KEY_MODE, str(MODE_OFF))
        assert device.cache[wc.KEY_TIME] == 0
        assert device.time_remaining.native_value == 0
        assert device.cook_time.native_value == 0

        # locally triggered off
        device.receive(wc.KEY_MODE, str(MODE_HIGH))
        device.receive(wc.KEY_TIME, "240")
        await device.async_request_onoff(False)
        assert context.transport.payloads(wc.ACTION_SETCROCKPOTSTATE) == [
            _mode_payload(MODE_OFF, 0)
        ]
        assert device.time_remaining.native_value == 0
        assert context.state(fan.DOMAIN, "heat").state == STATE_OFF


async def test_crockpot_timer_shows_warm(hass):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        device = context.device
        device.receive(wc.KEY_TIME, "90")
        assert device.cache[wc.KEY_MODE] == MODE_WARM
        assert device.fan.percentage == 33
        assert device.time_remaining.native_value == 1.5


async def test_crockpot_unknown_mode(hass, caplog: pytest.LogCaptureFixture):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        device = context.device
        helpers.pop_logs(caplog)
        device.receive(wc.KEY_MODE, "53")
        assert device.cache[wc.KEY_MODE] == MODE_OFF
        assert helpers.pop_logs(caplog, level=logging.WARNING)


async def test_crockpot_revert(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_CROCKPOT) as context:
        context.transport.fail(wc.ACTION_SETCROCKPOTSTATE)
        device = context.device
        with pytest.raises(HomeAssistantError):
            await device.async_request_percentage(90)
        assert device.fan.percentage == 90
        await context.async_wait_revert()
        assert device.fan.percentage == 0
        assert context.state(fan.DOMAIN, "heat").state == STATE_OFF
