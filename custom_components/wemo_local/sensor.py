import typing

from homeassistant.components import sensor

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from typing import NotRequired, Unpack

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .helpers.manager import EntityManager

    class WLEnumSensorArgs(me.WLEntityArgs):
        options: NotRequired[list[str]]

    class WLNumericSensorArgs(me.WLNumericEntityArgs):
        state_class: NotRequired[sensor.SensorStateClass]


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, sensor.DOMAIN)


class WLEnumSensor(me.WLEntity, sensor.SensorEntity):
    """Label sensor (crockpot mode, humidifier fan mode, purifier state)."""

    PLATFORM = sensor.DOMAIN

    native_value: str | None
    options: list[str] | None

    __slots__ = (
        "native_value",
        "options",
    )

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        **kwargs: "Unpack[WLEnumSensorArgs]",
    ):
        self.native_value = None
        self.options = kwargs.pop("options", None)
        super().__init__(manager, entitykey, sensor.SensorDeviceClass.ENUM, **kwargs)

    def update_native_value(self, native_value: str | None):
        if self.native_value == native_value:
            return False
        self.native_value = native_value
        self.flush_state()
        return True


class WLNumericSensor(me.WLNumericEntity, sensor.SensorEntity):

    PLATFORM = sensor.DOMAIN
    DeviceClass = sensor.SensorDeviceClass
    StateClass = sensor.SensorStateClass

    DEVICECLASS_TO_UNIT_MAP = {
        DeviceClass.POWER: me.WLEntity.hac.UnitOfPower.WATT,
        DeviceClass.ENERGY: me.WLEntity.hac.UnitOfEnergy.KILO_WATT_HOUR,
        DeviceClass.DURATION: me.WLEntity.hac.UnitOfTime.SECONDS,
    }

    state_class: StateClass

    __slots__ = ("state_class",)

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        device_class: DeviceClass,
        **kwargs: "Unpack[WLNumericSensorArgs]",
    ):
        # energy is metered as an ever increasing total, anything else is sampled
        self.state_class = kwargs.pop("state_class", None) or (
            self.StateClass.TOTAL_INCREASING
            if device_class is self.DeviceClass.ENERGY
            else self.StateClass.MEASUREMENT
        )
        super().__init__(manager, entitykey, device_class, **kwargs)
