"""Test the humidifier fan modes and target humidity"""

import asyncio

from homeassistant.components import fan, humidifier, sensor
from homeassistant.const import (
    ATTR_ENTITY_ID,
    SERVICE_TURN_OFF,
    SERVICE_TURN_ON,
    STATE_OFF,
    STATE_ON,
)

from custom_components.wemo_local import const as mlc
from custom_components.wemo_local.wemoclient import (
    build_attribute_list,
    const as wc,
    parse_attribute_list,
)

from tests import helpers


def _set_attributes(transport: helpers.FakeTransport):
    return [
        parse_attribute_list(payload[wc.KEY_ATTRIBUTELIST])
        for payload in transport.payloads(wc.ACTION_SETATTRIBUTES)
    ]


async def test_humidifier_setup(hass):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        state = context.state(humidifier.DOMAIN, "humidifier")
        assert state.state == STATE_OFF
        assert state.attributes[humidifier.ATTR_HUMIDITY] == 45
        assert state.attributes[humidifier.ATTR_CURRENT_HUMIDITY] == 42
        assert context.state(sensor.DOMAIN, "fan_mode").state == "off"
        assert context.transport.payloads(wc.ACTION_GETATTRIBUTES) == [None]


async def test_humidifier_target_humidity(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        device = context.device
        await hass.services.async_call(
            humidifier.DOMAIN,
            humidifier.SERVICE_SET_HUMIDITY,
            {
                ATTR_ENTITY_ID: context.entity_id(humidifier.DOMAIN, "humidifier"),
                humidifier.ATTR_HUMIDITY: 53,
            },
            blocking=True,
        )
        assert _set_attributes(context.transport) == [
            {wc.KEY_DESIREDHUMIDITY: "2"}
        ]
        assert device.humidifier.target_humidity == 55
        # the device code round-trips to the canonical value
        device.receive(wc.KEY_DESIREDHUMIDITY, "2")
        assert device.humidifier.target_humidity == 55
        assert (
            context.state(humidifier.DOMAIN, "humidifier").attributes[
                humidifier.ATTR_HUMIDITY
            ]
            == 55
        )


async def test_humidifier_fan_mode(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        device = context.device
        await hass.services.async_call(
            fan.DOMAIN,
            fan.SERVICE_SET_PERCENTAGE,
            {
                ATTR_ENTITY_ID: context.entity_id(fan.DOMAIN, "fan"),
                fan.ATTR_PERCENTAGE: 45,
            },
            blocking=True,
        )
        assert _set_attributes(context.transport) == [{wc.KEY_FANMODE: "2"}]
        assert device.fan.percentage == 40
        assert context.state(sensor.DOMAIN, "fan_mode").state == "low"
        assert context.state(humidifier.DOMAIN, "humidifier").state == STATE_ON


async def test_humidifier_debounce(hass, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        device = context.device
        await asyncio.gather(
            device.async_request_percentage(20),
            device.async_request_percentage(100),
            device.async_request_humidity(60),
        )
        # fan mode and humidity are different write classes
        assert _set_attributes(context.transport) == [
            {wc.KEY_FANMODE: "5"},
            {wc.KEY_DESIREDHUMIDITY: "3"},
        ]


async def test_humidifier_last_on_mode(hass, hass_storage, fast_delays):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        device = context.device
        entity_id = context.entity_id(humidifier.DOMAIN, "humidifier")
        # never turned on before: defaults to 'min'
        assert device.last_on_mode == 1
        device.receive(wc.KEY_FANMODE, "4")
        assert device.last_on_mode == 4
        await hass.services.async_call(
            humidifier.DOMAIN,
            SERVICE_TURN_OFF,
            {ATTR_ENTITY_ID: entity_id},
            blocking=True,
        )
        await hass.services.async_call(
            humidifier.DOMAIN,
            SERVICE_TURN_ON,
            {ATTR_ENTITY_ID: entity_id},
            blocking=True,
        )
        assert _set_attributes(context.transport) == [
            {wc.KEY_FANMODE: "0"},
            {wc.KEY_FANMODE: "4"},
        ]

        await context.async_unload()
        store_key = f"{mlc.DOMAIN}.context.{context.serial}"
        assert hass_storage[store_key]["data"]["last_on_mode"] == 4
        # the persisted mode survives a restart
        await context.async_setup()
        assert context.device.last_on_mode == 4


async def test_humidifier_pushed_attributes(hass):
    async with helpers.DeviceContext(hass, mlc.DEVICE_TYPE_HUMIDIFIER) as context:
        device = context.device
        attributes = parse_attribute_list(
            build_attribute_list(
                {
                    wc.KEY_FANMODE: 3,
                    wc.KEY_CURRENTHUMIDITY: 51.4,
                    "WaterAdvise": 0,
                }
            )
        )
        for name, value in attributes.items():
            device.receive(name, value)
        assert device.fan.percentage == 60
        assert device.humidifier.current_humidity == 51
        assert "WaterAdvise" not in device.cache
