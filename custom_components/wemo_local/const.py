"""Constants for the Wemo local LAN integration."""

import logging
from typing import Final, NotRequired, TypedDict

from homeassistant import const as hac

from .wemoclient import const as wc

DOMAIN: Final = "wemo_local"
#########################
# common ConfigEntry keys
#########################
# sets the logging level x ConfigEntry
CONF_LOGGING_LEVEL: Final = "logging_level"
CONF_LOGGING_VERBOSE: Final = 5
CONF_LOGGING_DEBUG: Final = logging.DEBUG
CONF_LOGGING_INFO: Final = logging.INFO
CONF_LOGGING_WARNING: Final = logging.WARNING
CONF_LOGGING_CRITICAL: Final = logging.CRITICAL
CONF_LOGGING_LEVEL_OPTIONS: Final = {
    logging.NOTSET: "default",
    CONF_LOGGING_CRITICAL: "critical",
    CONF_LOGGING_WARNING: "warning",
    CONF_LOGGING_INFO: "info",
    CONF_LOGGING_DEBUG: "debug",
    CONF_LOGGING_VERBOSE: "verbose",
}


class ManagerConfigType(TypedDict):
    """Common config_entry keys for any ConfigEntryManager type"""

    logging_level: NotRequired[int]
    """override the default log level set in HA configuration"""


###############################
# WemoDevice ConfigEntry keys
###############################
CONF_HOST: Final = hac.CONF_HOST
CONF_PORT: Final = hac.CONF_PORT
CONF_PORT_DEFAULT: Final = wc.PORT_DEFAULT
CONF_SERIAL: Final = "serial"
CONF_DEVICE_TYPE: Final = "device_type"
CONF_MODEL: Final = "model"
# how state changes are delivered from the device
CONF_CONNECTION: Final = "connection"
CONF_CONNECTION_PUSH: Final = "push"
CONF_CONNECTION_POLL: Final = "poll"
CONF_CONNECTION_OPTIONS: Final = (CONF_CONNECTION_PUSH, CONF_CONNECTION_POLL)
# general device state polling
CONF_POLLING_PERIOD: Final = "polling_period"
CONF_POLLING_PERIOD_MIN: Final = 5
CONF_POLLING_PERIOD_DEFAULT: Final = 30
# dimmer
CONF_BRIGHTNESS_STEP: Final = "brightness_step"
CONF_BRIGHTNESS_STEP_DEFAULT: Final = 1
# insight metering
CONF_SHOW_TODAY_TC: Final = "show_today_tc"
CONF_WATT_DIFF: Final = "watt_diff"
CONF_WATT_DIFF_DEFAULT: Final = 1
CONF_TIME_DIFF: Final = "time_diff"
CONF_TIME_DIFF_DEFAULT: Final = 1
# bridge
CONF_SUBDEVICES: Final = "subdevices"

DEVICE_TYPE_LIGHTSWITCH: Final = "lightswitch"
DEVICE_TYPE_DIMMER: Final = "dimmer"
DEVICE_TYPE_CROCKPOT: Final = "crockpot"
DEVICE_TYPE_HUMIDIFIER: Final = "humidifier"
DEVICE_TYPE_PURIFIER: Final = "purifier"
DEVICE_TYPE_INSIGHT: Final = "insight"
DEVICE_TYPE_BRIDGE: Final = "bridge"
DEVICE_TYPE_OPTIONS: Final = (
    DEVICE_TYPE_LIGHTSWITCH,
    DEVICE_TYPE_DIMMER,
    DEVICE_TYPE_CROCKPOT,
    DEVICE_TYPE_HUMIDIFIER,
    DEVICE_TYPE_PURIFIER,
    DEVICE_TYPE_INSIGHT,
    DEVICE_TYPE_BRIDGE,
)
# maps the UPnP deviceType urn (as found in setup.xml) to our device kinds
UPNP_DEVICE_TYPE_MAP: Final = {
    "urn:Belkin:device:lightswitch:1": DEVICE_TYPE_LIGHTSWITCH,
    "urn:Belkin:device:controllee:1": DEVICE_TYPE_LIGHTSWITCH,
    "urn:Belkin:device:dimmer:1": DEVICE_TYPE_DIMMER,
    "urn:Belkin:device:crockpot:1": DEVICE_TYPE_CROCKPOT,
    "urn:Belkin:device:Humidifier:1": DEVICE_TYPE_HUMIDIFIER,
    "urn:Belkin:device:AirPurifier:1": DEVICE_TYPE_PURIFIER,
    "urn:Belkin:device:insight:1": DEVICE_TYPE_INSIGHT,
    "urn:Belkin:device:bridge:1": DEVICE_TYPE_BRIDGE,
}


class DeviceConfigType(ManagerConfigType, total=False):
    """
    Device config_entry keys. host, serial and device_type are always
    set by the config flow while the others are optional.
    """

    host: str
    port: NotRequired[int]
    serial: str
    device_type: str
    model: NotRequired[str]
    connection: NotRequired[str]
    """push: rely on notifications, poll: query the device every polling_period"""
    polling_period: NotRequired[int]
    brightness_step: NotRequired[int]
    show_today_tc: NotRequired[bool]
    """show today consumption instead of the accumulated total"""
    watt_diff: NotRequired[int]
    """minimum power change (W) before logging a new reading"""
    time_diff: NotRequired[int]
    """quiet period (s) after logging a power reading"""
    subdevices: NotRequired[list[str]]


SERVICE_NOTIFY = "notify"
"""name of the service used to push device notifications into wemo_local"""
ATTR_DEVICE_ID: Final = hac.ATTR_DEVICE_ID
ATTR_NAME: Final = hac.ATTR_NAME
ATTR_SERIAL: Final = "serial"
ATTR_VALUE: Final = "value"

#
# some common entitykeys
#
ENERGY_SENSOR_KEY: Final = "energy"
POWER_SENSOR_KEY: Final = "power"

# general working/configuration parameters
PARAM_REVERT_DELAY = 2
"""delay before restoring the displayed value after a failed write"""
PARAM_CONTEXT_SAVE_DELAY = 10
"""used to delay the persisted context save to storage"""
PARAM_LOG_TIMEOUT = 300
"""timeout for repeating the same (failure) log message"""
