import typing

from homeassistant.components import humidifier

from .helpers import entity as me

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .devices.humidifier import HumidifierDevice


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_devices
):
    me.platform_setup_entry(hass, config_entry, async_add_devices, humidifier.DOMAIN)


class WLHumidifier(me.WLBinaryEntity, humidifier.HumidifierEntity):
    """
    Humidifier entity: target humidity is limited to the few levels
    supported by the device (see HumidifierDevice).
    """

    PLATFORM = humidifier.DOMAIN
    DeviceClass = humidifier.HumidifierDeviceClass

    manager: "HumidifierDevice"

    # HA core entity attributes:
    current_humidity: int | None
    target_humidity: int | None
    min_humidity: int = 45
    max_humidity: int = 100
    supported_features = humidifier.HumidifierEntityFeature(0)

    __slots__ = (
        "current_humidity",
        "target_humidity",
    )

    def __init__(self, manager: "HumidifierDevice"):
        self.current_humidity = None
        self.target_humidity = None
        super().__init__(
            manager,
            "humidifier",
            WLHumidifier.DeviceClass.HUMIDIFIER,
            name=None,
        )

    # interface: humidifier.HumidifierEntity
    async def async_set_humidity(self, humidity: int):
        await self.manager.async_request_humidity(humidity)

    # interface: self
    def update_current_humidity(self, current_humidity: int):
        if self.current_humidity != current_humidity:
            self.current_humidity = current_humidity
            self.flush_state()

    def update_target_humidity(self, target_humidity: int | None):
        if self.target_humidity != target_humidity:
            self.target_humidity = target_humidity
            self.flush_state()
