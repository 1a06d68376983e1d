"""
Wemo (Crock-Pot) slow cooker.

The heat mode is exposed as a 3 speed fan (warm/low/high) while the cook time
is a number (hours). The device reports time in minutes and only accepts
cook times below 24 hours.
"""

import math
import typing

from .. import const as mlc
from ..fan import WLFan
from ..helpers.quantization import Bucket, QuantizationTable
from ..number import WLNumber
from ..sensor import WLEnumSensor, WLNumericSensor
from ..wemo_device import WemoDevice
from ..wemoclient import const as wc

if typing.TYPE_CHECKING:
    from typing import Final


MODE_OFF: "Final" = 0
MODE_WARM: "Final" = 50
MODE_LOW: "Final" = 51
MODE_HIGH: "Final" = 52

MODE_OPTIONS: "Final" = {
    MODE_OFF: "off",
    MODE_WARM: "warm",
    MODE_LOW: "low",
    MODE_HIGH: "high",
}

SPEED_TABLE: "Final" = QuantizationTable(
    (
        Bucket(25, True, MODE_OFF, 0),
        Bucket(50, True, MODE_WARM, 33),
        Bucket(75, True, MODE_LOW, 66),
        Bucket(None, True, MODE_HIGH, 99),
    )
)

COOK_TIME_MAX: "Final" = 24
COOK_TIME_DEVICE_MAX: "Final" = 23.5


def minutes_to_hours(minutes: int) -> float:
    """Device minutes to (half) hours: any running timer shows at least 0.5 h."""
    if minutes > 0:
        return max(math.floor(minutes / 30 + 0.5) / 2, 0.5)
    return 0


class CookTimeNumber(WLNumber):

    manager: "CrockpotDevice"

    # HA core entity attributes:
    native_max_value = COOK_TIME_MAX
    native_min_value = 0
    native_step = 0.5

    __slots__ = ()

    def __init__(self, manager: "CrockpotDevice"):
        super().__init__(
            manager,
            "cook_time",
            WLNumber.DeviceClass.DURATION,
            device_value=0,
        )

    async def async_set_native_value(self, value: float):
        await self.manager.async_request_cook_time(value)


class CrockpotDevice(WemoDevice):

    DEVICE_TYPE = mlc.DEVICE_TYPE_CROCKPOT

    SETTLE_DELAY = 0.5

    __slots__ = (
        "fan",
        "cook_time",
        "time_remaining",
        "mode_sensor",
    )

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        self.fan = WLFan(
            self,
            "heat",
            name=None,
            speed_count=len(SPEED_TABLE.codes) - 1,
            device_value=False,
        )
        self.cook_time = CookTimeNumber(self)
        self.time_remaining = WLNumericSensor(
            self,
            "time_remaining",
            WLNumericSensor.DeviceClass.DURATION,
            native_unit_of_measurement=WLNumericSensor.hac.UnitOfTime.HOURS,
            device_value=0,
        )
        self.mode_sensor = WLEnumSensor(
            self,
            "mode",
            options=list(MODE_OPTIONS.values()),
        )

    async def async_shutdown(self):
        await super().async_shutdown()
        self.fan = None  # type: ignore
        self.cook_time = None  # type: ignore
        self.time_remaining = None  # type: ignore
        self.mode_sensor = None  # type: ignore

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        if not onoff:
            await self.async_request_percentage(0)
        elif not self.fan.is_on:
            await self.async_request_percentage(SPEED_TABLE.to_value(MODE_WARM))

    async def async_request_percentage(self, percentage: int):
        self.fan.update_percentage(percentage)

        async def _async_request():
            mode = SPEED_TABLE.quantize(percentage)
            cache = self.cache
            if mode == cache.get(wc.KEY_MODE):
                self._flush_mode(mode)
                return
            # the device stops any timer when switched off or kept warm
            minutes = 0 if mode in (MODE_OFF, MODE_WARM) else cache.get(wc.KEY_TIME, 0)
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETCROCKPOTSTATE,
                {wc.KEY_MODE: mode, wc.KEY_TIME: minutes},
            )
            self.update_cache(wc.KEY_MODE, mode)
            self.update_cache(wc.KEY_TIME, minutes)
            self._flush_mode(mode)
            self._flush_time(minutes)
            self.log(self.INFO, "Mode changed to %s", MODE_OPTIONS[mode])

        await self.async_write(
            self.WRITE_LEVEL, self.SETTLE_DELAY, _async_request, self._revert_state
        )

    async def async_request_cook_time(self, hours: float):
        if hours >= COOK_TIME_MAX:
            hours = COOK_TIME_DEVICE_MAX
        self.cook_time.update_native_value(hours)

        async def _async_request():
            minutes = int(hours * 60)
            cache = self.cache
            if minutes == cache.get(wc.KEY_TIME):
                self._flush_time(minutes)
                return
            mode = cache.get(wc.KEY_MODE, MODE_OFF)
            if minutes and mode in (MODE_OFF, MODE_WARM):
                # the timer only runs when cooking
                mode = MODE_LOW
                self.fan.update_percentage(SPEED_TABLE.to_value(MODE_LOW))
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETCROCKPOTSTATE,
                {wc.KEY_MODE: mode, wc.KEY_TIME: minutes},
            )
            self.update_cache(wc.KEY_MODE, mode)
            self.update_cache(wc.KEY_TIME, minutes)
            self._flush_mode(mode)
            self._flush_time(minutes)
            self.log(self.INFO, "Cook time changed to %s h", hours)

        await self.async_write(
            self.WRITE_TIME, self.SETTLE_DELAY, _async_request, self._revert_state
        )

    # interface: WemoDevice
    async def _async_refresh(self):
        response = await self.async_send_command(
            wc.SERVICE_BASICEVENT, wc.ACTION_GETCROCKPOTSTATE
        )
        for key in (wc.KEY_MODE, wc.KEY_TIME):
            if key in response:
                self.receive(key, response[key])

    # interface: self
    def _flush_mode(self, mode: int):
        self.fan.update_percentage(SPEED_TABLE.to_value(mode))
        self.mode_sensor.update_native_value(MODE_OPTIONS[mode])

    def _flush_time(self, minutes: int):
        hours = minutes_to_hours(minutes)
        self.cook_time.update_native_value(hours)
        self.time_remaining.update_native_value(hours)
        return hours

    def _revert_state(self):
        cache = self.cache
        mode = cache.get(wc.KEY_MODE)
        if mode is None:
            self.fan.update_percentage(0)
        else:
            self._flush_mode(mode)
        self._flush_time(cache.get(wc.KEY_TIME, 0))

    def _parse_mode(self, value):
        mode = int(value)
        SPEED_TABLE.to_value(mode)  # raises on unknown codes
        if self.update_cache(wc.KEY_MODE, mode):
            self._flush_mode(mode)
            if mode == MODE_OFF:
                self.update_cache(wc.KEY_TIME, 0)
                self._flush_time(0)
            self.log(self.INFO, "Mode changed to %s", MODE_OPTIONS[mode])

    def _parse_time(self, value):
        minutes = int(value)
        if self.update_cache(wc.KEY_TIME, minutes):
            if self._flush_time(minutes) and not self.fan.percentage:
                # cooking with the timer running: show (at least) warm
                self.update_cache(wc.KEY_MODE, MODE_WARM)
                self._flush_mode(MODE_WARM)
            self.log(self.DEBUG, "Time remaining changed to %d min", minutes)
