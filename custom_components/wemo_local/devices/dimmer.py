from .. import const as mlc
from ..helpers import clamp
from ..helpers.quantization import quantize_step
from ..light import WLLight
from ..wemo_device import WemoDevice, parse_binarystate
from ..wemoclient import WemoError, const as wc


class DimmerDevice(WemoDevice):
    """
    Wemo dimmer: brightness is expressed (device side) as 0..100 and
    is snapped to the configured 'brightness_step'.
    """

    DEVICE_TYPE = mlc.DEVICE_TYPE_DIMMER

    STATE_SETTLE_DELAY = 0.5
    BRIGHTNESS_SETTLE_DELAY = 0.3
    BRIGHTNESS_SCALE = (1, 100)

    __slots__ = (
        "brightness_step",
        "light",
    )

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        self.brightness_step = clamp(
            int(
                self.config.get(
                    mlc.CONF_BRIGHTNESS_STEP, mlc.CONF_BRIGHTNESS_STEP_DEFAULT
                )
            ),
            1,
            100,
        )
        self.light = WLLight(
            self, "light", name=None, brightness_scale=self.BRIGHTNESS_SCALE
        )

    async def async_shutdown(self):
        await super().async_shutdown()
        self.light = None  # type: ignore

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        self.light.update_onoff(onoff)
        binarystate = wc.BINARYSTATE_ON if onoff else wc.BINARYSTATE_OFF

        async def _async_request():
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETBINARYSTATE,
                {wc.KEY_BINARYSTATE: binarystate},
            )
            self.update_cache(wc.KEY_BINARYSTATE, binarystate)
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")

        if (
            await self.async_write(
                self.WRITE_STATE,
                self.STATE_SETTLE_DELAY,
                _async_request,
                self._revert_state,
            )
            and onoff
        ):
            # the device restores its last brightness when switched on
            await self._async_request_brightness()

    async def async_request_brightness(self, brightness: float):
        step = self.brightness_step
        level = quantize_step(brightness, step)
        if brightness > 0 and not level:
            # a turn on request never snaps to 'off': use the lowest step instead
            level = step
        brightness = level
        light = self.light
        light.update_onoff(brightness > 0)
        light.update_brightness(brightness)
        binarystate = wc.BINARYSTATE_ON if brightness else wc.BINARYSTATE_OFF

        async def _async_request():
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETBINARYSTATE,
                {wc.KEY_BINARYSTATE: binarystate, wc.KEY_BRIGHTNESS: brightness},
            )
            self.update_cache(wc.KEY_BINARYSTATE, binarystate)
            self.update_cache(wc.KEY_BRIGHTNESS, brightness)
            self.log(self.INFO, "Brightness changed to %d%%", brightness)

        await self.async_write(
            self.WRITE_LEVEL,
            self.BRIGHTNESS_SETTLE_DELAY,
            _async_request,
            self._revert_state,
        )

    # interface: WemoDevice
    async def _async_refresh(self):
        response = await self.async_send_command(
            wc.SERVICE_BASICEVENT, wc.ACTION_GETBINARYSTATE
        )
        # brightness is already in the same response: no need to re-read it
        if wc.KEY_BRIGHTNESS in response:
            self.receive(wc.KEY_BRIGHTNESS, response[wc.KEY_BRIGHTNESS])
        if wc.KEY_BINARYSTATE in response:
            with self.exception_warning("parsing BinaryState"):
                self._update_binarystate(
                    parse_binarystate(response[wc.KEY_BINARYSTATE])
                )
        else:
            self.log(self.DEBUG, "Missing BinaryState in refresh response")

    # interface: self
    async def _async_request_brightness(self):
        try:
            await self._async_refresh()
        except WemoError as error:
            self.log(
                self.WARNING,
                "Cannot read brightness: %s (%s)",
                error.reason,
                str(error),
            )

    def _revert_state(self):
        cache = self.cache
        binarystate = cache.get(wc.KEY_BINARYSTATE)
        self.light.update_onoff(None if binarystate is None else binarystate != 0)
        self.light.update_brightness(cache.get(wc.KEY_BRIGHTNESS))

    def _update_binarystate(self, binarystate: int):
        if binarystate != wc.BINARYSTATE_OFF:
            binarystate = wc.BINARYSTATE_ON
        if self.update_cache(wc.KEY_BINARYSTATE, binarystate):
            self.light.update_onoff(binarystate == wc.BINARYSTATE_ON)
            self.log(self.INFO, "State changed to %s", "on" if binarystate else "off")
            return True
        return False

    def _parse_BinaryState(self, value):
        if self._update_binarystate(parse_binarystate(value)) and self.cache.get(
            wc.KEY_BINARYSTATE
        ):
            self.async_create_task(
                self._async_request_brightness(), ".request_brightness"
            )

    def _parse_brightness(self, value):
        brightness = int(value)
        if self.update_cache(wc.KEY_BRIGHTNESS, brightness):
            self.light.update_brightness(brightness)
            self.log(self.DEBUG, "Brightness changed to %d%%", brightness)
