from typing import TYPE_CHECKING

from homeassistant.components.diagnostics import async_redact_data

from . import const as mlc

if TYPE_CHECKING:
    from typing import Any, Mapping

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .wemo_device import WemoDevice

TO_REDACT = {mlc.CONF_HOST}


async def async_get_device_diagnostics(
    hass: "HomeAssistant", config_entry: "ConfigEntry[WemoDevice]", device
) -> "Mapping[str, Any]":
    return await async_get_config_entry_diagnostics(hass, config_entry)


async def async_get_config_entry_diagnostics(
    hass: "HomeAssistant", config_entry: "ConfigEntry[WemoDevice]"
) -> "Mapping[str, Any]":
    diagnostics = await config_entry.runtime_data.async_get_diagnostics()
    diagnostics["config"] = async_redact_data(diagnostics["config"], TO_REDACT)
    return diagnostics
