"""
Wemo Link bridge. The hub has no entities of its own: it routes
notifications and commands for the Link bulbs (or bulb groups) configured
in its 'subdevices' option. Each bulb is its own EntityManager with
its own HA device (linked 'via' the hub).
"""

import typing

from homeassistant.helpers import device_registry as dr

from .. import const as mlc
from ..helpers import clamp
from ..helpers.entity import WLEntity
from ..light import WLLight
from ..wemo_device import WemoDevice, WemoDeviceBase
from ..wemoclient import (
    build_device_status,
    is_group_id,
    const as wc,
    parse_device_status_list,
)

if typing.TYPE_CHECKING:
    from typing import Final


CAPABILITY_NAME_MAP: "Final" = {
    wc.CAPABILITY_ONOFF: "onoff",
    wc.CAPABILITY_LEVEL: "level",
}

LEVEL_MAX: "Final" = 255


class LinkBulb(WemoDeviceBase):
    """A bulb (or group of bulbs) paired to a Link hub."""

    STATE_SETTLE_DELAY = 0
    LEVEL_SETTLE_DELAY = 0.3
    BRIGHTNESS_SCALE = (1, LEVEL_MAX)

    __slots__ = (
        "hub",
        "device_id",
        "light",
    )

    def __init__(self, hub: "WemoBridge", device_id: str):
        self.hub = hub
        self.device_id = device_id
        self.platforms = hub.platforms
        super().__init__(
            device_id,
            api=hub.api,
            hass=hub.hass,
            config_entry=hub.config_entry,
            deviceentry_id={"identifiers": {(mlc.DOMAIN, device_id)}},
            logger=hub,
        )
        dr.async_get(self.hass).async_get_or_create(
            config_entry_id=hub.config_entry.entry_id,
            manufacturer="Belkin",
            name=self.name,
            model="Link group" if is_group_id(device_id) else "Link bulb",
            via_device=(mlc.DOMAIN, hub.serial),
            **self.deviceentry_id,  # type: ignore
        )
        self.light = WLLight(
            self, "light", name=None, brightness_scale=self.BRIGHTNESS_SCALE
        )

    async def async_shutdown(self):
        await super().async_shutdown()
        self.light = None  # type: ignore
        self.hub = None  # type: ignore

    # interface: EntityManager
    @property
    def name(self) -> str:
        return f"{self.hub.name} {self.device_id}"

    # interface: WemoDeviceBase
    async def async_request_onoff(self, onoff: bool):
        self.light.update_onoff(onoff)
        state = 1 if onoff else 0

        async def _async_request():
            await self.hub.async_send(self.device_id, wc.CAPABILITY_ONOFF, state)
            self.update_cache("onoff", state)
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")

        await self.async_write(
            self.WRITE_STATE,
            self.STATE_SETTLE_DELAY,
            _async_request,
            self._revert_state,
        )

    async def async_request_brightness(self, level: float):
        level = clamp(round(level), 0, LEVEL_MAX)
        if not level:
            await self.async_request_onoff(False)
            return
        light = self.light
        light.update_onoff(True)
        light.update_brightness(level)

        async def _async_request():
            hub = self.hub
            if not self.cache.get("onoff"):
                await hub.async_send(self.device_id, wc.CAPABILITY_ONOFF, 1)
                self.update_cache("onoff", 1)
            # level:transition time
            await hub.async_send(self.device_id, wc.CAPABILITY_LEVEL, f"{level}:0")
            self.update_cache("level", level)
            self.log(self.INFO, "Brightness changed to %d", level)

        await self.async_write(
            self.WRITE_LEVEL,
            self.LEVEL_SETTLE_DELAY,
            _async_request,
            self._revert_state,
        )

    # interface: self
    def _revert_state(self):
        cache = self.cache
        onoff = cache.get("onoff")
        self.light.update_onoff(None if onoff is None else bool(onoff))
        self.light.update_brightness(cache.get("level"))

    def _parse_onoff(self, value):
        onoff = 1 if int(value) else 0
        if self.update_cache("onoff", onoff):
            self.light.update_onoff(bool(onoff))
            self.log(self.INFO, "State changed to %s", "on" if onoff else "off")

    def _parse_level(self, value):
        level = int(str(value).split(":", 1)[0])
        if self.update_cache("level", level):
            self.light.update_brightness(level)
            self.log(self.DEBUG, "Brightness changed to %d", level)


class WemoBridge(WemoDevice):

    DEVICE_TYPE = mlc.DEVICE_TYPE_BRIDGE

    __slots__ = ("subdevices",)

    def __init__(self, api, config_entry, context=None):
        self.subdevices: list[LinkBulb] = []
        super().__init__(api, config_entry, context)
        for device_id in self.config.get(mlc.CONF_SUBDEVICES, ()):
            self.subdevices.append(LinkBulb(self, device_id))

    async def async_shutdown(self):
        for subdevice in self.subdevices:
            await subdevice.async_shutdown()
        self.subdevices.clear()
        await super().async_shutdown()

    # interface: EntityManager
    def managed_entities(self, platform):
        entities: list[WLEntity] = super().managed_entities(platform)
        for subdevice in self.subdevices:
            entities.extend(subdevice.managed_entities(platform))
        return entities

    # interface: ConfigEntryManager
    def loggable_diagnostic_state(self):
        state = super().loggable_diagnostic_state()
        state["subdevices"] = {
            subdevice.device_id: subdevice.loggable_diagnostic_state()
            for subdevice in self.subdevices
        }
        return state

    # interface: WemoDevice
    async def _async_refresh(self):
        if not self.subdevices:
            return
        response = await self.async_send_command(
            wc.SERVICE_BRIDGE,
            wc.ACTION_GETDEVICESTATUS,
            {
                wc.KEY_DEVICEIDS: ",".join(
                    subdevice.device_id for subdevice in self.subdevices
                )
            },
        )
        for device_id, capabilities in parse_device_status_list(
            response.get(wc.KEY_DEVICESTATUSLIST, "")
        ):
            for capability, value in capabilities.items():
                if value:
                    self.receive_subdevice(device_id, capability, value)

    # interface: self
    def receive_subdevice(self, device_id: str, name: str, value):
        """
        Routes an attribute update to every subdevice matching device_id.
        Not finding any is not an error: the bulb might just not be
        configured in this hub entry.
        """
        name = CAPABILITY_NAME_MAP.get(name, name)
        matched = False
        for subdevice in self.subdevices:
            if subdevice.device_id == device_id:
                subdevice.receive(name, value)
                matched = True
        if not matched:
            self.log(
                self.DEBUG,
                "Ignoring update [%s: %s] for unknown subdevice %s",
                name,
                value,
                device_id,
            )

    async def async_send(self, device_id: str, capability: str, value):
        """Sends a capability change to a subdevice wrapped in the routing envelope."""
        return await self.async_send_command(
            wc.SERVICE_BRIDGE,
            wc.ACTION_SETDEVICESTATUS,
            {
                wc.KEY_DEVICESTATUSLIST: build_device_status(
                    device_id, capability, value
                )
            },
        )
