"""
Wemo (Holmes) smart humidifier.

FanMode (0..5) is exposed as a 5 speed fan and the desired humidity
as the target of a humidifier entity. The device only supports a handful
of humidity levels (code 0..4) so any requested target is snapped to them.
"""

import typing

from .. import const as mlc
from ..fan import WLFan
from ..helpers.quantization import Bucket, QuantizationTable
from ..humidifier import WLHumidifier
from ..sensor import WLEnumSensor
from ..wemo_device import WemoDevice
from ..wemoclient import build_attribute_list, const as wc, parse_attribute_list

if typing.TYPE_CHECKING:
    from typing import Final


FANMODE_OFF: "Final" = 0
FANMODE_MIN: "Final" = 1

FANMODE_OPTIONS: "Final" = ("off", "min", "low", "med", "high", "max")

FANMODE_TABLE: "Final" = QuantizationTable(
    (
        Bucket(10, True, 0, 0),
        Bucket(30, True, 1, 20),
        Bucket(50, True, 2, 40),
        Bucket(70, True, 3, 60),
        Bucket(90, True, 4, 80),
        Bucket(None, True, 5, 100),
    )
)

HUMIDITY_TABLE: "Final" = QuantizationTable(
    (
        Bucket(47, False, 0, 45),
        Bucket(52, False, 1, 50),
        Bucket(57, False, 2, 55),
        Bucket(80, False, 3, 60),
        Bucket(None, False, 4, 100),
    ),
    minimum=WLHumidifier.min_humidity,
    maximum=WLHumidifier.max_humidity,
)


class HumidifierDevice(WemoDevice):

    DEVICE_TYPE = mlc.DEVICE_TYPE_HUMIDIFIER

    SETTLE_DELAY = 0.5

    __slots__ = (
        "humidifier",
        "fan",
        "mode_sensor",
    )

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        self.humidifier = WLHumidifier(self)
        self.fan = WLFan(
            self,
            "fan",
            speed_count=len(FANMODE_TABLE.codes) - 1,
            device_value=False,
        )
        self.mode_sensor = WLEnumSensor(
            self, "fan_mode", options=list(FANMODE_OPTIONS)
        )

    async def async_shutdown(self):
        await super().async_shutdown()
        self.humidifier = None  # type: ignore
        self.fan = None  # type: ignore
        self.mode_sensor = None  # type: ignore

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        await self.async_request_percentage(
            FANMODE_TABLE.to_value(self.last_on_mode) if onoff else 0
        )

    async def async_request_percentage(self, percentage: int):
        self.fan.update_percentage(percentage)
        self.humidifier.update_onoff(percentage > 0)

        async def _async_request():
            fanmode = FANMODE_TABLE.quantize(percentage)
            if fanmode == self.cache.get(wc.KEY_FANMODE):
                self._flush_fanmode(fanmode)
                return
            await self._async_set_attributes({wc.KEY_FANMODE: fanmode})
            self.update_cache(wc.KEY_FANMODE, fanmode)
            self._flush_fanmode(fanmode)
            self.log(self.INFO, "Fan mode changed to %s", FANMODE_OPTIONS[fanmode])

        await self.async_write(
            self.WRITE_LEVEL, self.SETTLE_DELAY, _async_request, self._revert_fanmode
        )

    async def async_request_humidity(self, humidity: float):
        self.humidifier.update_target_humidity(humidity)

        async def _async_request():
            code = HUMIDITY_TABLE.quantize(humidity)
            if code == self.cache.get(wc.KEY_DESIREDHUMIDITY):
                self._flush_desired_humidity(code)
                return
            await self._async_set_attributes({wc.KEY_DESIREDHUMIDITY: code})
            self.update_cache(wc.KEY_DESIREDHUMIDITY, code)
            self._flush_desired_humidity(code)
            self.log(
                self.INFO,
                "Target humidity changed to %d%%",
                HUMIDITY_TABLE.to_value(code),
            )

        await self.async_write(
            self.WRITE_HUMIDITY,
            self.SETTLE_DELAY,
            _async_request,
            self._revert_desired_humidity,
        )

    # interface: WemoDevice
    async def _async_refresh(self):
        response = await self.async_send_command(
            wc.SERVICE_DEVICEEVENT, wc.ACTION_GETATTRIBUTES
        )
        attributes = parse_attribute_list(response.get(wc.KEY_ATTRIBUTELIST, ""))
        for key in (
            wc.KEY_FANMODE,
            wc.KEY_CURRENTHUMIDITY,
            wc.KEY_DESIREDHUMIDITY,
        ):
            if key in attributes:
                self.receive(key, attributes[key])

    # interface: self
    @property
    def last_on_mode(self) -> int:
        return self.context.get("last_on_mode", FANMODE_MIN)

    async def _async_set_attributes(self, attributes: dict):
        await self.async_send_command(
            wc.SERVICE_DEVICEEVENT,
            wc.ACTION_SETATTRIBUTES,
            {wc.KEY_ATTRIBUTELIST: build_attribute_list(attributes)},
        )

    def _flush_fanmode(self, fanmode: int):
        self.fan.update_percentage(FANMODE_TABLE.to_value(fanmode))
        self.humidifier.update_onoff(fanmode != FANMODE_OFF)
        self.mode_sensor.update_native_value(FANMODE_OPTIONS[fanmode])
        if fanmode != FANMODE_OFF and fanmode != self.last_on_mode:
            self.context["last_on_mode"] = fanmode
            self.save_context()

    def _flush_desired_humidity(self, code: int):
        self.humidifier.update_target_humidity(HUMIDITY_TABLE.to_value(code))

    def _revert_fanmode(self):
        fanmode = self.cache.get(wc.KEY_FANMODE)
        if fanmode is None:
            self.fan.update_percentage(0)
            self.humidifier.update_onoff(None)
        else:
            self._flush_fanmode(fanmode)

    def _revert_desired_humidity(self):
        code = self.cache.get(wc.KEY_DESIREDHUMIDITY)
        self.humidifier.update_target_humidity(
            None if code is None else HUMIDITY_TABLE.to_value(code)
        )

    def _parse_FanMode(self, value):
        fanmode = int(value)
        FANMODE_TABLE.to_value(fanmode)  # raises on unknown codes
        if self.update_cache(wc.KEY_FANMODE, fanmode):
            self._flush_fanmode(fanmode)
            self.log(self.INFO, "Fan mode changed to %s", FANMODE_OPTIONS[fanmode])

    def _parse_CurrentHumidity(self, value):
        humidity = round(float(value))
        if self.update_cache(wc.KEY_CURRENTHUMIDITY, humidity):
            self.humidifier.update_current_humidity(humidity)

    def _parse_DesiredHumidity(self, value):
        code = int(value)
        HUMIDITY_TABLE.to_value(code)  # raises on unknown codes
        if self.update_cache(wc.KEY_DESIREDHUMIDITY, code):
            self._flush_desired_humidity(code)
