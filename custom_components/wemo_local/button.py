import typing

from homeassistant.components import button

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from typing import Awaitable, Callable, Unpack

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .helpers.manager import EntityManager


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, button.DOMAIN)


class WLButton(me.WLEntity, button.ButtonEntity):
    """Stateless action (like the Insight energy reset) run by the owning device."""

    PLATFORM = button.DOMAIN

    __slots__ = ("_press_handler",)

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        press_handler: "Callable[[], Awaitable[None]]",
        **kwargs: "Unpack[me.WLEntityArgs]",
    ):
        self._press_handler = press_handler
        super().__init__(manager, entitykey, None, **kwargs)

    async def async_shutdown(self):
        await super().async_shutdown()
        self._press_handler = None  # type: ignore

    # interface: button.ButtonEntity
    async def async_press(self):
        await self._press_handler()
