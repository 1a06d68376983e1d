import typing

from homeassistant import const as hac
from homeassistant.exceptions import HomeAssistantError
import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from . import Loggable
from .. import const as mlc
from ..wemoclient import parse_serial_number
from ..wemoclient.httpclient import WemoHttpClient

if typing.TYPE_CHECKING:
    from typing import Final

    from homeassistant.core import HomeAssistant, ServiceCall

    from ..wemo_device import WemoDevice


NOTIFY_SCHEMA = vol.Schema(
    {
        vol.Required(mlc.ATTR_SERIAL): cv.string,
        vol.Required(mlc.ATTR_NAME): cv.string,
        vol.Required(mlc.ATTR_VALUE): vol.Any(cv.string, int, float, dict),
        vol.Optional(mlc.ATTR_DEVICE_ID): cv.string,
    }
)


class WemoApi(Loggable):
    """
    central wemo_local management (singleton) class which keeps track
    of the configured devices and routes pushed notifications to them
    """

    if typing.TYPE_CHECKING:
        hass: Final[HomeAssistant]
        devices: Final[dict[str, WemoDevice | None]]
        """
        dict of configured devices (keyed by serial). Every device config_entry in the
        system is mapped here and set to the WemoDevice instance if the device is actually
        active (config_entry loaded) or set to None if the config_entry is not loaded
        """

    __slots__ = (
        "hass",
        "devices",
    )

    @staticmethod
    def get(hass: "HomeAssistant") -> "WemoApi":
        """
        Set up the component.
        'Our' truth singleton is saved in hass.data[DOMAIN]
        """
        try:
            return hass.data[mlc.DOMAIN]
        except KeyError:
            hass.data[mlc.DOMAIN] = api = WemoApi(hass)

            async def _async_unload_wemoapi(_event) -> None:
                await api.async_terminate()
                hass.data.pop(mlc.DOMAIN)

            hass.bus.async_listen_once(
                hac.EVENT_HOMEASSISTANT_STOP, _async_unload_wemoapi
            )
            return api

    def __init__(self, hass: "HomeAssistant"):
        self.hass = hass
        self.devices = {}
        super().__init__("api")
        for config_entry in hass.config_entries.async_entries(mlc.DOMAIN):
            if config_entry.unique_id:
                self.devices[config_entry.unique_id] = None

        async def _async_service_notify(service_call: "ServiceCall"):
            data = service_call.data
            serial = parse_serial_number(data[mlc.ATTR_SERIAL])
            if not (device := self.devices.get(serial)):
                raise HomeAssistantError(f"Device {serial} is not configured or loaded")
            name = data[mlc.ATTR_NAME]
            value = data[mlc.ATTR_VALUE]
            if device_id := data.get(mlc.ATTR_DEVICE_ID):
                if device.device_type != mlc.DEVICE_TYPE_BRIDGE:
                    raise HomeAssistantError(
                        f"Device {serial} is not a Link hub: cannot route to {device_id}"
                    )
                device.receive_subdevice(device_id, name, value)  # type: ignore
            else:
                device.receive(name, value)

        hass.services.async_register(
            mlc.DOMAIN,
            mlc.SERVICE_NOTIFY,
            _async_service_notify,
            schema=NOTIFY_SCHEMA,
        )

    def active_devices(self):
        """Iterates over the currently loaded WemoDevices."""
        return (device for device in self.devices.values() if device)

    async def async_terminate(self):
        """complete shutdown when HA exits"""
        self.hass.services.async_remove(mlc.DOMAIN, mlc.SERVICE_NOTIFY)
        for device in self.active_devices():
            await device.async_shutdown()
        await WemoHttpClient.async_shutdown_session()
        self.hass = None  # type: ignore
