import typing

from homeassistant.components import light
from homeassistant.components.light import ATTR_BRIGHTNESS, ColorMode
import homeassistant.util.color as color_util

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from typing import Unpack

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .helpers.manager import EntityManager

    class WLLightArgs(me.WLBinaryEntityArgs):
        brightness_scale: typing.NotRequired[tuple[int, int]]


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, light.DOMAIN)


BRIGHTNESS_SCALE = (1, 100)
"""Default device brightness range (Wemo dimmer)"""


class WLLight(me.WLBinaryEntity, light.LightEntity):
    """
    Dimmable light. The device side brightness ('native_brightness') is expressed
    in the device units (see brightness_scale) while HA 'brightness' is 1..255.
    """

    PLATFORM = light.DOMAIN

    # HA core entity attributes:
    brightness: int | None
    color_mode: ColorMode = ColorMode.BRIGHTNESS
    supported_color_modes: set[ColorMode] = {ColorMode.BRIGHTNESS}

    __slots__ = (
        "brightness",
        "brightness_scale",
        "native_brightness",
    )

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        **kwargs: "Unpack[WLLightArgs]",
    ):
        self.brightness_scale = kwargs.pop("brightness_scale", BRIGHTNESS_SCALE)
        self.brightness = None
        self.native_brightness = None
        super().__init__(manager, entitykey, None, **kwargs)

    # interface: LightEntity
    async def async_turn_on(self, **kwargs):
        if ATTR_BRIGHTNESS in kwargs:
            await self.manager.async_request_brightness(
                color_util.brightness_to_value(
                    self.brightness_scale, kwargs[ATTR_BRIGHTNESS]
                )
            )
        else:
            await self.manager.async_request_onoff(True)

    # interface: self
    def update_brightness(self, native_brightness: int | None):
        if self.native_brightness != native_brightness:
            self.native_brightness = native_brightness
            self.brightness = (
                color_util.value_to_brightness(
                    self.brightness_scale, native_brightness
                )
                if native_brightness
                else None
            )
            self.flush_state()
