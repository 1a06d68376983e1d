"""
Wemo UPnP protocol constants
"""

from typing import Final

PORT_DEFAULT: Final = 49153
SETUP_PATH: Final = "/setup.xml"

SERVICE_BASICEVENT: Final = "urn:Belkin:service:basicevent:1"
SERVICE_DEVICEEVENT: Final = "urn:Belkin:service:deviceevent:1"
SERVICE_BRIDGE: Final = "urn:Belkin:service:bridge:1"
SERVICE_INSIGHT: Final = "urn:Belkin:service:insight:1"

# default control urls (usually confirmed/overriden by setup.xml serviceList)
SERVICE_CONTROL_URL_MAP: Final = {
    SERVICE_BASICEVENT: "/upnp/control/basicevent1",
    SERVICE_DEVICEEVENT: "/upnp/control/deviceevent1",
    SERVICE_BRIDGE: "/upnp/control/bridge1",
    SERVICE_INSIGHT: "/upnp/control/insight1",
}

ACTION_GETBINARYSTATE: Final = "GetBinaryState"
ACTION_SETBINARYSTATE: Final = "SetBinaryState"
ACTION_GETCROCKPOTSTATE: Final = "GetCrockpotState"
ACTION_SETCROCKPOTSTATE: Final = "SetCrockpotState"
ACTION_GETATTRIBUTES: Final = "GetAttributes"
ACTION_SETATTRIBUTES: Final = "SetAttributes"
ACTION_GETINSIGHTPARAMS: Final = "GetInsightParams"
ACTION_GETDEVICESTATUS: Final = "GetDeviceStatus"
ACTION_SETDEVICESTATUS: Final = "SetDeviceStatus"

KEY_BINARYSTATE: Final = "BinaryState"
KEY_BRIGHTNESS: Final = "brightness"
KEY_MODE: Final = "mode"
KEY_TIME: Final = "time"
KEY_ATTRIBUTELIST: Final = "attributeList"
KEY_FANMODE: Final = "FanMode"
KEY_CURRENTHUMIDITY: Final = "CurrentHumidity"
KEY_DESIREDHUMIDITY: Final = "DesiredHumidity"
KEY_INSIGHTPARAMS: Final = "InsightParams"
KEY_DEVICEIDS: Final = "DeviceIDs"
KEY_DEVICESTATUSLIST: Final = "DeviceStatusList"
KEY_DEVICESTATUS: Final = "DeviceStatus"
KEY_ISGROUPACTION: Final = "IsGroupAction"
KEY_DEVICEID: Final = "DeviceID"
KEY_CAPABILITYID: Final = "CapabilityID"
KEY_CAPABILITYVALUE: Final = "CapabilityValue"
# decoded InsightParams keys
KEY_STATE: Final = "state"
KEY_POWER: Final = "power"
KEY_TODAYWM: Final = "todayWm"
KEY_TODAYONSECONDS: Final = "todayOnSeconds"
# setup.xml keys
KEY_DEVICETYPE: Final = "deviceType"
KEY_FRIENDLYNAME: Final = "friendlyName"
KEY_MODELNAME: Final = "modelName"
KEY_SERIALNUMBER: Final = "serialNumber"
KEY_FIRMWAREVERSION: Final = "firmwareVersion"
KEY_SERVICES: Final = "services"

# BinaryState values
BINARYSTATE_OFF: Final = 0
BINARYSTATE_ON: Final = 1
BINARYSTATE_STANDBY: Final = 8

# Link hub capabilities
CAPABILITY_ONOFF: Final = "10006"
CAPABILITY_LEVEL: Final = "10008"
# group ids are 10 chars long while single bulbs have longer ids
GROUP_DEVICEID_LENGTH: Final = 10
