import typing

from homeassistant.components import fan

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from typing import Unpack

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .helpers.manager import EntityManager

    class WLFanArgs(me.WLBinaryEntityArgs):
        speed_count: typing.NotRequired[int]


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, fan.DOMAIN)


class WLFan(me.WLBinaryEntity, fan.FanEntity):
    """
    Fan entity used to represent the discrete 'levels' of an appliance
    (crockpot heat modes, humidifier fan modes) as a percentage or
    just a plain on/off (purifier) when speed_count == 0.
    """

    PLATFORM = fan.DOMAIN

    # HA core entity attributes:
    percentage: int | None
    preset_mode: str | None = None
    preset_modes: list[str] | None = None
    speed_count: int
    supported_features: fan.FanEntityFeature

    __slots__ = (
        "percentage",
        "speed_count",
        "supported_features",
    )

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        **kwargs: "Unpack[WLFanArgs]",
    ):
        self.percentage = None
        self.speed_count = speed_count = kwargs.pop("speed_count", 0)
        self.supported_features = (
            fan.FanEntityFeature.TURN_ON | fan.FanEntityFeature.TURN_OFF
        )
        if speed_count:
            self.supported_features |= fan.FanEntityFeature.SET_SPEED
        super().__init__(manager, entitykey, None, **kwargs)

    # interface: fan.FanEntity
    async def async_set_percentage(self, percentage: int) -> None:
        await self.manager.async_request_percentage(percentage)

    async def async_turn_on(
        self, percentage: int | None = None, preset_mode: str | None = None, **kwargs
    ):
        if percentage is not None and self.speed_count:
            await self.manager.async_request_percentage(percentage)
        else:
            await self.manager.async_request_onoff(True)

    # interface: self
    def update_percentage(self, percentage: int):
        is_on = percentage > 0
        if (self.percentage != percentage) or (self.is_on != is_on):
            self.percentage = percentage
            self.is_on = is_on
            self.flush_state()
