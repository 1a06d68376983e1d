from .. import const as mlc
from ..switch import WLSwitch
from ..wemo_device import WemoDevice, parse_binarystate
from ..wemoclient import const as wc


class LightSwitchDevice(WemoDevice):
    """Wemo light switch and smart plugs ('controllee')."""

    DEVICE_TYPE = mlc.DEVICE_TYPE_LIGHTSWITCH

    SETTLE_DELAY = 0

    __slots__ = ("switch",)

    def __init__(self, api, config_entry, context=None):
        super().__init__(api, config_entry, context)
        self.switch = WLSwitch(self, "switch", name=None)

    async def async_shutdown(self):
        await super().async_shutdown()
        self.switch = None  # type: ignore

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        self.switch.update_onoff(onoff)
        binarystate = wc.BINARYSTATE_ON if onoff else wc.BINARYSTATE_OFF

        async def _async_request():
            await self.async_send_command(
                wc.SERVICE_BASICEVENT,
                wc.ACTION_SETBINARYSTATE,
                {wc.KEY_BINARYSTATE: binarystate},
            )
            self.update_cache(wc.KEY_BINARYSTATE, binarystate)
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")

        await self.async_write(
            self.WRITE_STATE, self.SETTLE_DELAY, _async_request, self._revert_state
        )

    # interface: WemoDevice
    async def _async_refresh(self):
        await self._async_refresh_binarystate()

    # interface: self
    def _revert_state(self):
        binarystate = self.cache.get(wc.KEY_BINARYSTATE)
        self.switch.update_onoff(None if binarystate is None else binarystate != 0)

    def _parse_BinaryState(self, value):
        binarystate = parse_binarystate(value)
        if binarystate != wc.BINARYSTATE_OFF:
            binarystate = wc.BINARYSTATE_ON
        if self.update_cache(wc.KEY_BINARYSTATE, binarystate):
            self.switch.update_onoff(binarystate == wc.BINARYSTATE_ON)
            self.log(
                self.INFO,
                "State changed to %s",
                "on" if binarystate else "off",
            )
