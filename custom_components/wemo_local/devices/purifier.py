"""
Wemo switches configured to drive an air purifier. The 'insight' variant
also reports energy telemetry (InsightParams) which is converted
to power and (restart durable) accumulated energy readings.
"""

import typing

from .. import const as mlc
from ..button import WLButton
from ..fan import WLFan
from ..helpers.quantization import round_half_up
from ..sensor import WLEnumSensor, WLNumericSensor
from ..wemo_device import WemoDevice, parse_binarystate
from ..wemoclient import const as wc, parse_insight_params

if typing.TYPE_CHECKING:
    from typing import Final


STATE_INACTIVE: "Final" = "inactive"
STATE_IDLE: "Final" = "idle"
STATE_PURIFYING: "Final" = "purifying"
STATE_OPTIONS: "Final" = [STATE_INACTIVE, STATE_IDLE, STATE_PURIFYING]


class PurifierDevice(WemoDevice):

    DEVICE_TYPE = mlc.DEVICE_TYPE_PURIFIER

    SETTLE_DELAY = 0

    __slots__ = (
        "fan",
        "state_sensor",
    )

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        self.fan = WLFan(self, "purifier", name=None, device_value=False)
        self.state_sensor = WLEnumSensor(
            self, "purifier_state", options=STATE_OPTIONS
        )

    async def async_shutdown(self):
        await super().async_shutdown()
        self.fan = None  # type: ignore
        self.state_sensor = None  # type: ignore

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        self.fan.update_onoff(onoff)
        binarystate = wc.BINARYSTATE_ON if onoff else wc.BINARYSTATE_OFF

        async def _async_request():
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETBINARYSTATE,
                {wc.KEY_BINARYSTATE: binarystate},
            )
            self.update_cache(wc.KEY_BINARYSTATE, binarystate)
            self._flush_onoff(onoff)
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")

        await self.async_write(
            self.WRITE_STATE, self.SETTLE_DELAY, _async_request, self._revert_state
        )

    # interface: WemoDevice
    async def _async_refresh(self):
        await self._async_refresh_binarystate()

    # interface: self
    def _flush_onoff(self, onoff: bool):
        self.state_sensor.update_native_value(
            STATE_PURIFYING if onoff else STATE_INACTIVE
        )

    def _revert_state(self):
        binarystate = self.cache.get(wc.KEY_BINARYSTATE)
        self.fan.update_onoff(None if binarystate is None else binarystate != 0)

    def _parse_BinaryState(self, value):
        binarystate = parse_binarystate(value)
        if binarystate != wc.BINARYSTATE_OFF:
            binarystate = wc.BINARYSTATE_ON
        if self.update_cache(wc.KEY_BINARYSTATE, binarystate):
            onoff = binarystate == wc.BINARYSTATE_ON
            self.fan.update_onoff(onoff)
            self._flush_onoff(onoff)
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")
            return True
        return False


class InsightDevice(PurifierDevice):
    """
    Insight smart plug driving a purifier. BinaryState 8 (standby) is
    reported as 'on' while 'purifying' is only shown when the load is actually
    drawing power (InsightParams state == 1).
    """

    DEVICE_TYPE = mlc.DEVICE_TYPE_INSIGHT

    __slots__ = (
        "show_today_tc",
        "watt_diff",
        "time_diff",
        "power_sensor",
        "energy_sensor",
        "on_time_sensor",
        "reset_button",
        "_power_log_gate",
    )

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        config = self.config
        self.show_today_tc = config.get(mlc.CONF_SHOW_TODAY_TC, False)
        self.watt_diff = config.get(mlc.CONF_WATT_DIFF, mlc.CONF_WATT_DIFF_DEFAULT)
        time_diff = config.get(mlc.CONF_TIME_DIFF, mlc.CONF_TIME_DIFF_DEFAULT)
        # time_diff == 1 is the default and means no quiet period
        self.time_diff = 0 if time_diff == 1 else time_diff
        self._power_log_gate = None
        self.power_sensor = WLNumericSensor(
            self,
            mlc.POWER_SENSOR_KEY,
            WLNumericSensor.DeviceClass.POWER,
            device_value=0,
        )
        self.energy_sensor = WLNumericSensor(
            self,
            mlc.ENERGY_SENSOR_KEY,
            WLNumericSensor.DeviceClass.ENERGY,
            suggested_display_precision=3,
        )
        self.on_time_sensor = WLNumericSensor(
            self,
            "today_on_time",
            WLNumericSensor.DeviceClass.DURATION,
            state_class=WLNumericSensor.StateClass.TOTAL_INCREASING,
        )
        self.reset_button = WLButton(
            self,
            "reset_energy",
            self.async_reset_energy,
            entity_category=WLButton.EntityCategory.CONFIG,
        )

    async def async_init(self):
        await super().async_init()
        if not self.show_today_tc:
            self.energy_sensor.update_native_value(
                self.context.get("total_energy", 0)
            )

    async def async_shutdown(self):
        if self._power_log_gate:
            self._power_log_gate.cancel()
            self._power_log_gate = None
        await super().async_shutdown()
        self.power_sensor = None  # type: ignore
        self.energy_sensor = None  # type: ignore
        self.on_time_sensor = None  # type: ignore
        self.reset_button = None  # type: ignore

    # interface: WemoDevice
    async def _async_refresh(self):
        await self._async_refresh_binarystate()
        response = await self.async_send_command(
            wc.SERVICE_INSIGHT, wc.ACTION_GETINSIGHTPARAMS
        )
        if wc.KEY_INSIGHTPARAMS in response:
            self.receive(wc.KEY_INSIGHTPARAMS, response[wc.KEY_INSIGHTPARAMS])

    # interface: PurifierDevice
    def _flush_onoff(self, onoff: bool):
        # only InsightParams tell if the load is really drawing power
        if onoff:
            if self.state_sensor.native_value in (None, STATE_INACTIVE):
                self.state_sensor.update_native_value(STATE_IDLE)
        else:
            self.state_sensor.update_native_value(STATE_INACTIVE)
            self._update_power(0)

    # interface: self
    async def async_reset_energy(self):
        context = self.context
        context["last_cumulative"] = 0
        context["last_energy"] = 0
        context["total_energy"] = 0
        self.save_context()
        self.energy_sensor.update_native_value(0)
        self.log(self.INFO, "Energy total reset")

    def _parse_InsightParams(self, value):
        params = parse_insight_params(value)
        state = params[wc.KEY_STATE]
        self._parse_BinaryState(state)
        if self.cache.get(wc.KEY_BINARYSTATE):
            self.state_sensor.update_native_value(
                STATE_PURIFYING if state == wc.BINARYSTATE_ON else STATE_IDLE
            )
        self._update_energy(params[wc.KEY_TODAYWM], params[wc.KEY_TODAYONSECONDS])
        self._update_power(params[wc.KEY_POWER])

    def _update_power(self, power_mw: float):
        power = round_half_up(power_mw / 1000)
        last_power = self.cache.get(wc.KEY_POWER)
        if not self.update_cache(wc.KEY_POWER, power):
            return
        self.power_sensor.update_native_value(power)
        if self._power_log_gate:
            return
        if abs(power - (last_power or 0)) >= self.watt_diff:
            self.log(self.INFO, "Current consumption %d W", power)
            if self.time_diff:
                self._power_log_gate = self.schedule_callback(
                    self.time_diff, self._power_log_gate_callback
                )

    def _power_log_gate_callback(self):
        self._power_log_gate = None

    def _update_energy(self, today_wm: float, today_on_seconds: int):
        self.on_time_sensor.update_native_value(today_on_seconds)
        context = self.context
        if today_wm == context.get("last_cumulative"):
            return
        context["last_cumulative"] = today_wm
        today_kwh = round_half_up(today_wm / 60000) / 1000
        # the device counter resets daily: never let it decrease the total
        difference = max(today_kwh - context.get("last_energy", 0), 0)
        context["total_energy"] = context.get("total_energy", 0) + difference
        context["last_energy"] = today_kwh
        self.save_context()
        self.energy_sensor.update_native_value(
            today_kwh if self.show_today_tc else context["total_energy"]
        )
        if not self._power_log_gate:
            self.log(
                self.DEBUG,
                "Today consumption %.3f kWh (total %.3f kWh, on for %d s)",
                today_kwh,
                context["total_energy"],
                today_on_seconds,
            )
