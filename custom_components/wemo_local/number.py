import typing

from homeassistant.components import number

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, number.DOMAIN)


class WLNumber(me.WLNumericEntity, number.NumberEntity):
    """
    Base (abstract) ancestor for wemo_local number entities. Derived classes
    need to implement async_set_native_value by forwarding the request
    to the owning device.
    """

    if typing.TYPE_CHECKING:
        # HA core entity attributes:
        mode: number.NumberMode
        native_max_value: float
        native_min_value: float
        native_step: float

    PLATFORM = number.DOMAIN
    DeviceClass = number.NumberDeviceClass

    DEVICECLASS_TO_UNIT_MAP = {
        None: None,
        DeviceClass.DURATION: me.WLEntity.hac.UnitOfTime.HOURS,
    }

    # HA core entity attributes:
    mode = number.NumberMode.SLIDER
    native_min_value = 0
    native_max_value = 100
    native_step = 1

    # interface: number.NumberEntity
    async def async_set_native_value(self, value: float):
        raise NotImplementedError("Called 'async_set_native_value' on abstract number")
