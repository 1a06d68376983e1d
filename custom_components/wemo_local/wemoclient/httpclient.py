"""
Implementation for an async (aiohttp.ClientSession) UPnP/SOAP client
for Wemo devices.
"""

import logging
import socket
import sys
from typing import TYPE_CHECKING
from xml.etree import ElementTree
from xml.sax.saxutils import escape

import aiohttp
from yarl import URL

from . import WemoProtocolError, WemoServiceError, classify, const as wc, parse_setup

if TYPE_CHECKING:
    from typing import Any, ClassVar, Mapping, Protocol

    class LoggerT(Protocol):
        def isEnabledFor(self, level: int) -> bool: ...
        def log(self, level: int, msg: str, *args, **kwargs) -> None: ...


SOAP_ENVELOPE = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/"'
    ' s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">'
    '<s:Body><u:{action} xmlns:u="{service}">{arguments}</u:{action}></s:Body>'
    "</s:Envelope>"
)


def build_soap_request(
    service: str, action: str, payload: "Mapping[str, Any] | None" = None
) -> str:
    arguments = (
        "".join(
            f"<{name}>{escape(str(value))}</{name}>" for name, value in payload.items()
        )
        if payload
        else ""
    )
    return SOAP_ENVELOPE.format(service=service, action=action, arguments=arguments)


def parse_soap_response(text: str, action: str) -> dict[str, str]:
    """Returns the (flat) arguments of the <u:{action}Response> element."""
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as error:
        raise WemoProtocolError(f"invalid SOAP response ({error})") from error
    response_tag = f"{action}Response"
    for element in root.iter():
        if element.tag.rsplit("}", 1)[-1] == response_tag:
            return {
                child.tag.rsplit("}", 1)[-1]: child.text or "" for child in element
            }
    raise WemoProtocolError(f"missing {response_tag} in SOAP response")


class WemoHttpClient:
    if TYPE_CHECKING:
        SESSION_MAXIMUM_CONNECTIONS: ClassVar
        SESSION_MAXIMUM_CONNECTIONS_PER_HOST: ClassVar
        SESSION_TIMEOUT: ClassVar
        _SESSION: ClassVar[aiohttp.ClientSession | None]

        services: dict[str, str]

    SESSION_MAXIMUM_CONNECTIONS = 50
    SESSION_MAXIMUM_CONNECTIONS_PER_HOST = 1
    SESSION_TIMEOUT = aiohttp.ClientTimeout(total=10, connect=5)

    # Wemo UPnP stacks are fragile when hit by concurrent requests so we're
    # using a dedicated session serializing connections to the same device.
    _SESSION = None

    @staticmethod
    def _get_or_create_client_session():
        if not WemoHttpClient._SESSION:
            WemoHttpClient._SESSION = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(
                    family=socket.AF_INET,
                    limit=WemoHttpClient.SESSION_MAXIMUM_CONNECTIONS,
                    limit_per_host=WemoHttpClient.SESSION_MAXIMUM_CONNECTIONS_PER_HOST,
                    ssl=False,
                ),
                headers={
                    aiohttp.hdrs.USER_AGENT: "WemoLocal aiohttp/{0} Python/{1[0]}.{1[1]}".format(
                        aiohttp.__version__, sys.version_info
                    ),
                },
                timeout=WemoHttpClient.SESSION_TIMEOUT,
            )
        return WemoHttpClient._SESSION

    @staticmethod
    async def async_shutdown_session():
        if WemoHttpClient._SESSION:
            await WemoHttpClient._SESSION.close()
            WemoHttpClient._SESSION = None

    __slots__ = (
        "_host",
        "_port",
        "_baseurl",
        "timeout",
        "services",
        "_session",
        "_logger",
        "_log_level_dump",
    )

    def __init__(
        self,
        host: str,
        port: int = wc.PORT_DEFAULT,
        *,
        session: aiohttp.ClientSession | None = None,
        logger: "LoggerT | None" = None,
        log_level_dump: int = logging.NOTSET,
    ):
        """
        host: the ip or hostname of the device
        port: the UPnP http port (Wemo firmwares use 49152-49154)
        session: the shared session to use or None to use the library dedicated one
        logger: a shared logger to enable logging
        log_level_dump: the logging level at which the full SOAP payloads will be dumped
        """
        self._host = host
        self._port = port
        self._baseurl = URL.build(scheme="http", host=host, port=port)
        self.timeout = WemoHttpClient.SESSION_TIMEOUT
        self.services = dict(wc.SERVICE_CONTROL_URL_MAP)
        # the shared session is created on first use
        self._session = session
        self._logger = logger
        self._log_level_dump = log_level_dump

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        return self._port

    @property
    def session(self):
        if not (session := self._session):
            self._session = session = WemoHttpClient._get_or_create_client_session()
        return session

    def set_services(self, services: "Mapping[str, str]"):
        """Updates the control urls as discovered in setup.xml"""
        self.services.update(services)

    def _log_exception(self, logid: str, exception: Exception):
        if self._logger:
            self._logger.log(
                logging.DEBUG,
                "%s: HTTP %s (%s)",
                logid,
                type(exception).__name__,
                str(exception),
            )

    async def async_get_setup(self) -> dict:
        """Reads and parses the device descriptor (setup.xml)."""
        logid = f"WemoHttpClient({self._host}:{wc.SETUP_PATH})"
        try:
            response = await self.session.get(
                self._baseurl.with_path(wc.SETUP_PATH), timeout=self.timeout
            )
            response.raise_for_status()
            setup = parse_setup(await response.text())
        except Exception as exception:
            self._log_exception(logid, exception)
            raise classify(exception) from exception
        self.set_services(setup[wc.KEY_SERVICES])
        return setup

    async def async_send_command(
        self,
        service: str,
        action: str,
        payload: "Mapping[str, Any] | None" = None,
    ) -> dict[str, str]:
        """
        Sends a SOAP action to the device returning the (flat) response arguments.
        Any failure is raised as a (classified) WemoError.
        """
        try:
            control_url = self.services[service]
        except KeyError:
            raise WemoServiceError(f"service {service} not available")

        logger = self._logger
        logid = f"WemoHttpClient({self._host}:{action})"
        request = build_soap_request(service, action, payload)
        try:
            if logger and logger.isEnabledFor(self._log_level_dump):
                logger.log(
                    self._log_level_dump, "%s: HTTP Request (%s)", logid, request
                )
            else:
                logger = None
            # Wemo devices often drop the first connection attempt after
            # being idle for a while so we retry connecting with an increasing
            # timeout before giving up
            _connect_timeout_max = self.timeout.connect or self.timeout.total or 5
            _connect_timeout = 1
            while True:
                try:
                    response = await self.session.post(
                        url=self._baseurl.with_path(control_url),
                        data=request.encode("utf-8"),
                        headers={
                            aiohttp.hdrs.CONTENT_TYPE: 'text/xml; charset="utf-8"',
                            "SOAPACTION": f'"{service}#{action}"',
                        },
                        timeout=aiohttp.ClientTimeout(
                            total=self.timeout.total, connect=_connect_timeout
                        ),
                    )
                    break
                except aiohttp.ServerTimeoutError as exception:
                    if _connect_timeout < _connect_timeout_max:
                        _connect_timeout = _connect_timeout * 2
                    else:
                        raise exception

            response.raise_for_status()
            response = await response.text()
            if logger:
                logger.log(
                    self._log_level_dump, "%s: HTTP Response (%s)", logid, response
                )
            return parse_soap_response(response, action)
        except Exception as exception:
            self._log_exception(logid, exception)
            raise classify(exception) from exception
