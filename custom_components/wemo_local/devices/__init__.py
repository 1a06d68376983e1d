"""
Device kind adapters. Every module here defines a WemoDevice derived class
implementing the '_parse_{attribute}' handlers, the refresh and the write
requests for that kind of appliance.
"""

import typing

from homeassistant.exceptions import ConfigEntryError

from .. import const as mlc

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from ..helpers.component_api import WemoApi
    from ..wemo_device import DeviceContextType, WemoDevice


def get_device_class(device_type: str) -> "type[WemoDevice]":
    # imports are deferred so that only the needed platforms get loaded
    if device_type == mlc.DEVICE_TYPE_LIGHTSWITCH:
        from .switch import LightSwitchDevice

        return LightSwitchDevice
    if device_type == mlc.DEVICE_TYPE_DIMMER:
        from .dimmer import DimmerDevice

        return DimmerDevice
    if device_type == mlc.DEVICE_TYPE_CROCKPOT:
        from .crockpot import CrockpotDevice

        return CrockpotDevice
    if device_type == mlc.DEVICE_TYPE_HUMIDIFIER:
        from .humidifier import HumidifierDevice

        return HumidifierDevice
    if device_type == mlc.DEVICE_TYPE_PURIFIER:
        from .purifier import PurifierDevice

        return PurifierDevice
    if device_type == mlc.DEVICE_TYPE_INSIGHT:
        from .purifier import InsightDevice

        return InsightDevice
    if device_type == mlc.DEVICE_TYPE_BRIDGE:
        from .hub import WemoBridge

        return WemoBridge
    raise ConfigEntryError(f"Unsupported device type ({device_type})")


def build_device(
    api: "WemoApi",
    config_entry: "ConfigEntry",
    context: "DeviceContextType | None" = None,
) -> "WemoDevice":
    return get_device_class(config_entry.data[mlc.CONF_DEVICE_TYPE])(
        api, config_entry, context
    )
