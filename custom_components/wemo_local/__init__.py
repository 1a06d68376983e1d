"""The Wemo local LAN integration."""

import typing

from homeassistant.exceptions import ConfigEntryError, ConfigEntryNotReady

from . import const as mlc
from .devices import build_device
from .helpers import LOGGER
from .helpers.component_api import WemoApi
from .wemo_device import DeviceContextStore

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .wemo_device import WemoDevice


async def async_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry[WemoDevice]"
):
    LOGGER.debug("async_setup_entry (entry_id:%s)", config_entry.entry_id)

    api = WemoApi.get(hass)
    serial = config_entry.unique_id
    if not serial or serial != config_entry.data.get(mlc.CONF_SERIAL):
        # shouldnt really happen: it means we have a 'critical' bug in our config entry/flow management
        # or that the config_entry was tampered
        raise ConfigEntryError(
            "Unrecoverable serial mismatch. 'ConfigEntry.unique_id' "
            "does not match the configured 'serial'. "
            "Please delete the entry and reconfigure it"
        )
    if api.devices.get(serial):
        raise ConfigEntryError(f"Device {serial} already initialized")
    device = build_device(api, config_entry)
    try:
        await device.async_init()
    except Exception as error:
        # storage might not be ready yet: let HA retry later
        await device.async_shutdown()
        raise ConfigEntryNotReady from error
    try:
        await device.async_setup_entry(hass, config_entry)
        api.devices[serial] = device
        device.start()
        return True
    except Exception as error:
        await device.async_shutdown()
        raise ConfigEntryError from error


async def async_unload_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry[WemoDevice]"
) -> bool:
    LOGGER.debug("async_unload_entry (entry_id:%s)", config_entry.entry_id)
    if await config_entry.runtime_data.async_unload_entry(hass, config_entry):
        WemoApi.get(hass).devices[config_entry.unique_id] = None  # type: ignore
        return True
    return False


async def async_remove_entry(hass: "HomeAssistant", config_entry: "ConfigEntry"):
    LOGGER.debug("async_remove_entry (entry_id:%s)", config_entry.entry_id)
    api = WemoApi.get(hass)
    if serial := config_entry.unique_id:
        api.devices.pop(serial, None)
        await DeviceContextStore(hass, serial).async_remove()
