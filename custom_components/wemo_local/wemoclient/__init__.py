"""
A collection of utilities to help managing the Wemo device protocol
"""

import asyncio
import re
from typing import TYPE_CHECKING
from xml.etree import ElementTree
from xml.sax.saxutils import escape, unescape

import aiohttp

from . import const as wc

if TYPE_CHECKING:
    from typing import Any, Mapping


class WemoError(Exception):
    """Base exception for any failure while talking to a device."""

    reason = "error"


class WemoTimeoutError(WemoError):
    reason = "timeout"


class WemoUnreachableError(WemoError):
    reason = "unreachable"


class WemoServiceError(WemoError):
    """The device doesn't implement (or refused) the requested service/action."""

    reason = "service not found"


class WemoProtocolError(WemoError):
    """The device reply could not be decoded."""

    reason = "invalid response"


def classify(exception: Exception) -> WemoError:
    """
    Maps any transport exception to our WemoError hierarchy so that
    callers can rely on a single exception type for control flow.
    Order matters: aiohttp.ServerTimeoutError is both a TimeoutError
    and a ClientConnectionError and TimeoutError is an OSError.
    """
    if isinstance(exception, WemoError):
        return exception
    if isinstance(exception, (asyncio.TimeoutError, aiohttp.ServerTimeoutError)):
        error = WemoTimeoutError(str(exception) or "request timed out")
    elif isinstance(exception, aiohttp.ClientResponseError):
        error = WemoServiceError(f"HTTP {exception.status} {exception.message}")
    elif isinstance(exception, (aiohttp.ClientConnectionError, OSError)):
        error = WemoUnreachableError(str(exception) or "device unreachable")
    else:
        error = WemoProtocolError(str(exception) or exception.__class__.__name__)
    error.__cause__ = exception
    return error


def parse_serial_number(serial: object) -> str:
    """Normalize a serial number (strip whitespaces and quotes, uppercase)."""
    return re.sub(r"[\s'\"]+", "", str(serial)).upper()


_XML_ENTITIES = {"&quot;": '"', "&#039;": "'"}


def decode_xml(text: str) -> str:
    """Unescape an xml encoded fragment (as found in attributeList)."""
    return unescape(text, _XML_ENTITIES)


def _strip_declaration(text: str):
    return re.sub(r"^\s*<\?xml[^>]*\?>", "", text)


def _local_name(tag: str):
    return tag.rsplit("}", 1)[-1]


def build_attribute_list(attributes: "Mapping[str, Any]") -> str:
    """{"FanMode": 2} -> <attribute><name>FanMode</name><value>2</value></attribute>"""
    return "".join(
        f"<attribute><name>{escape(str(name))}</name><value>{escape(str(value))}</value></attribute>"
        for name, value in attributes.items()
    )


def parse_attribute_list(text: str) -> dict[str, str]:
    """
    Parses the deviceevent 'attributeList' argument (either still encoded
    or not) returning a flat name -> value dict.
    """
    if "&lt;" in text:
        text = decode_xml(text)
    try:
        root = ElementTree.fromstring(f"<attributeList>{text}</attributeList>")
    except ElementTree.ParseError as error:
        raise WemoProtocolError(f"invalid attributeList ({error})") from error
    attributes = {}
    for attribute in root.iter("attribute"):
        name = attribute.findtext("name")
        if name:
            attributes[name] = attribute.findtext("value") or ""
    return attributes


def is_group_id(device_id: str):
    return len(device_id) == wc.GROUP_DEVICEID_LENGTH


def build_device_status(device_id: str, capability: str, value: object) -> str:
    """Builds the routing envelope for a Link hub SetDeviceStatus command."""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<{wc.KEY_DEVICESTATUS}>"
        f"<{wc.KEY_ISGROUPACTION}>{'YES' if is_group_id(device_id) else 'NO'}</{wc.KEY_ISGROUPACTION}>"
        f"<{wc.KEY_DEVICEID}>{escape(device_id)}</{wc.KEY_DEVICEID}>"
        f"<{wc.KEY_CAPABILITYID}>{escape(str(capability))}</{wc.KEY_CAPABILITYID}>"
        f"<{wc.KEY_CAPABILITYVALUE}>{escape(str(value))}</{wc.KEY_CAPABILITYVALUE}>"
        f"</{wc.KEY_DEVICESTATUS}>"
    )


def parse_device_status_list(text: str) -> list[tuple[str, dict[str, str]]]:
    """
    Parses a Link hub DeviceStatusList returning a list of
    (device_id, {capability_id: capability_value}).
    """
    if "&lt;" in text:
        text = decode_xml(text)
    try:
        root = ElementTree.fromstring(_strip_declaration(text))
    except ElementTree.ParseError as error:
        raise WemoProtocolError(f"invalid DeviceStatusList ({error})") from error
    result = []
    for device_status in root.iter(wc.KEY_DEVICESTATUS):
        device_id = device_status.findtext(wc.KEY_DEVICEID)
        if not device_id:
            continue
        capability_ids = (device_status.findtext(wc.KEY_CAPABILITYID) or "").split(",")
        capability_values = (
            device_status.findtext(wc.KEY_CAPABILITYVALUE) or ""
        ).split(",")
        result.append(
            (
                device_id,
                {
                    capability_id: capability_value
                    for capability_id, capability_value in zip(
                        capability_ids, capability_values
                    )
                    if capability_id
                },
            )
        )
    return result


def parse_insight_params(value: "str | Mapping[str, Any]") -> dict[str, int | float]:
    """
    Decodes InsightParams either as read from the device:
    "8|1611239880|0|1234|56789|1209600|0|2435|87000|7654321|8000"
    state|lastchange|onfor|ontoday|ontotal|timeperiod|x|currentmw|todaymw|totalmw|threshold
    or as an already split mapping {state, power, todayWm, todayOnSeconds}
    (notify service) whose values could still be strings.
    """
    try:
        if isinstance(value, str):
            params = value.split("|")
            state, today_on_seconds, power, today_wm = (
                params[0],
                params[3],
                params[7],
                params[8],
            )
        else:
            state = value[wc.KEY_STATE]
            today_on_seconds = value.get(wc.KEY_TODAYONSECONDS, 0)
            power = value.get(wc.KEY_POWER, 0)
            today_wm = value.get(wc.KEY_TODAYWM, 0)
        return {
            wc.KEY_STATE: int(state),
            wc.KEY_TODAYONSECONDS: int(float(today_on_seconds)),
            wc.KEY_POWER: float(power),
            wc.KEY_TODAYWM: float(today_wm),
        }
    except (IndexError, KeyError, TypeError, ValueError) as error:
        raise WemoProtocolError(f"invalid InsightParams '{value}'") from error


def parse_setup(text: str) -> dict:
    """
    Extracts the device descriptor from setup.xml:
    {"deviceType": ..., "serialNumber": ..., "services": {serviceType: controlURL}}
    """
    try:
        root = ElementTree.fromstring(_strip_declaration(text))
    except ElementTree.ParseError as error:
        raise WemoProtocolError(f"invalid setup.xml ({error})") from error
    setup = {}
    services = setup[wc.KEY_SERVICES] = {}
    device = next(
        (element for element in root if _local_name(element.tag) == "device"), None
    )
    if device is None:
        raise WemoProtocolError("missing device descriptor in setup.xml")
    for element in device:
        tag = _local_name(element.tag)
        if tag == "serviceList":
            for service in element:
                service_info = {
                    _local_name(child.tag): (child.text or "").strip()
                    for child in service
                }
                if (service_type := service_info.get("serviceType")) and (
                    control_url := service_info.get("controlURL")
                ):
                    services[service_type] = control_url
        elif len(element) == 0:
            setup[tag] = (element.text or "").strip()
    if wc.KEY_SERIALNUMBER in setup:
        setup[wc.KEY_SERIALNUMBER] = parse_serial_number(setup[wc.KEY_SERIALNUMBER])
    return setup
