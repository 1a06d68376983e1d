import typing

from homeassistant.components import switch

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, switch.DOMAIN)


class WLSwitch(me.WLBinaryEntity, switch.SwitchEntity):
    """
    Generic HA switch: on/off requests are forwarded to the owning
    device through async_request_onoff.
    """

    PLATFORM = switch.DOMAIN
    DeviceClass = switch.SwitchDeviceClass
