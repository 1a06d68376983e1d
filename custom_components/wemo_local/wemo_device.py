"""
Base mediation engine shared by every Wemo device adapter.

The device (or Link subdevice) keeps a cache of the last confirmed remote state
and reconciles it with what the user asks through HA entities:
- external updates (poll responses or pushed notifications) are compared against
the cache and dropped when unchanged
- writes are debounced per 'write class' by a generation counter: only the
latest write for a class survives its settle delay
- failed writes schedule a revert of the optimistic entity state and raise
DeviceNotRespondingError to the caller
"""

import asyncio
import typing

from homeassistant.helpers import device_registry as dr, storage

from . import const as mlc
from .helpers import DeviceNotRespondingError
from .helpers.manager import ConfigEntryManager, EntityManager
from .wemoclient import WemoError, const as wc
from .wemoclient.httpclient import WemoHttpClient

if typing.TYPE_CHECKING:
    from typing import Any, Awaitable, Callable, ClassVar, Final, Unpack

    from homeassistant.config_entries import ConfigEntry

    from .helpers.component_api import WemoApi
    from .const import DeviceConfigType


class DeviceContextType(typing.TypedDict, total=False):
    """Per device state surviving HA restarts."""

    last_on_mode: int
    last_cumulative: float
    last_energy: float
    total_energy: float


class DeviceContextStore(storage.Store[DeviceContextType]):
    VERSION = 1

    def __init__(self, hass, serial: str):
        super().__init__(
            hass,
            DeviceContextStore.VERSION,
            f"{mlc.DOMAIN}.context.{serial}",
        )


class WemoDeviceBase(EntityManager):
    """
    Shared mediation primitives for devices and Link subdevices.
    """

    if typing.TYPE_CHECKING:
        cache: Final[dict[str, Any]]
        _write_generations: Final[dict[str, int]]
        _revert_handles: Final[dict[str, asyncio.TimerHandle]]

    # write classes: writes in the same class debounce each other
    WRITE_STATE: typing.Final = "state"
    WRITE_LEVEL: typing.Final = "level"
    WRITE_TIME: typing.Final = "time"
    WRITE_HUMIDITY: typing.Final = "humidity"

    def __init__(self, id: str, **kwargs: "Unpack[EntityManager.Args]"):
        self.cache = {}
        self._write_generations = {}
        self._revert_handles = {}
        super().__init__(id, **kwargs)

    async def async_shutdown(self):
        for revert_handle in self._revert_handles.values():
            revert_handle.cancel()
        self._revert_handles.clear()
        await super().async_shutdown()

    # interface: self
    async def async_request_onoff(self, onoff: bool):
        raise NotImplementedError("Called 'async_request_onoff' on wrong device type")

    def receive(self, name: str, value):
        """
        Entry point for any attribute update coming from the device
        (either as a refresh response or a pushed notification).
        Dispatches to the '_parse_{name}' handler if any.
        """
        try:
            parser = getattr(self, f"_parse_{name}")
        except AttributeError:
            self.log(self.DEBUG, "Ignoring attribute [%s: %s]", name, value)
            return
        self.log(self.VERBOSE, "Received update [%s: %s]", name, value)
        try:
            parser(value)
        except Exception as exception:
            # this is likely an unknown code from the device:
            # just drop this update and keep going
            self.log_exception(
                self.WARNING, exception, "parsing attribute [%s: %s]", name, value
            )

    def update_cache(self, key: str, value) -> bool:
        """Stores value in the cache returning True if it changed."""
        cache = self.cache
        if key in cache and cache[key] == value:
            return False
        cache[key] = value
        return True

    async def async_write(
        self,
        write_class: str,
        settle_delay: float,
        async_request: "Callable[[], Awaitable[Any]]",
        revert: "Callable[[], None]",
    ) -> bool:
        """
        Runs a (debounced) write:
        - waits settle_delay and aborts if a newer write for write_class came in meanwhile
        - runs async_request which is responsible for quantizing, skipping
        unchanged codes, sending the command and updating the cache
        - on failure schedules 'revert' after PARAM_REVERT_DELAY and raises
        DeviceNotRespondingError.
        Returns False when superseded.
        """
        generation = self._write_generations.get(write_class, 0) + 1
        self._write_generations[write_class] = generation
        if settle_delay:
            await asyncio.sleep(settle_delay)
            if self._write_generations[write_class] != generation:
                self.log(self.VERBOSE, "Write (%s) superseded", write_class)
                return False
        try:
            await async_request()
        except WemoError as error:
            self.log(
                self.WARNING,
                "Cannot control %s: %s (%s)",
                write_class,
                error.reason,
                str(error),
            )
            self._schedule_revert(write_class, revert)
            raise DeviceNotRespondingError(self.name, error.reason) from error
        # a pending revert from a previous failure would restore an outdated
        # state over the one we just confirmed
        self._cancel_revert(write_class)
        return True

    def _schedule_revert(self, write_class: str, revert: "Callable[[], None]"):
        self._cancel_revert(write_class)
        self._revert_handles[write_class] = self.schedule_callback(
            mlc.PARAM_REVERT_DELAY, self._revert_callback, write_class, revert
        )

    def _cancel_revert(self, write_class: str):
        if revert_handle := self._revert_handles.pop(write_class, None):
            revert_handle.cancel()

    def _revert_callback(self, write_class: str, revert: "Callable[[], None]"):
        self._revert_handles.pop(write_class, None)
        self.log(self.DEBUG, "Reverting %s to the last confirmed state", write_class)
        revert()

    def loggable_diagnostic_state(self):
        return {"cache": dict(self.cache)}


class WemoDevice(WemoDeviceBase, ConfigEntryManager):
    """
    Base class for every Wemo appliance bound to a ConfigEntry.
    Derived classes implement the device kind specific parsing
    ('_parse_{attribute}'), refresh and write requests.
    """

    if typing.TYPE_CHECKING:
        DEVICE_TYPE: ClassVar[str]
        config: DeviceConfigType
        serial: Final[str]
        device_type: Final[str]
        connection: Final[str]
        polling_period: Final[int]
        client: Final[WemoHttpClient]
        context: DeviceContextType
        _store: Final[DeviceContextStore]
        _unsub_polling: asyncio.TimerHandle | None

    def __init__(
        self,
        api: "WemoApi",
        config_entry: "ConfigEntry",
        context: "DeviceContextType | None" = None,
    ):
        """
        context: an already loaded persistent context. When None (the default)
        it will be loaded from HA storage in async_init.
        """
        config: "DeviceConfigType" = config_entry.data  # type: ignore
        self.serial = serial = config[mlc.CONF_SERIAL]
        self.device_type = config[mlc.CONF_DEVICE_TYPE]
        self.connection = config.get(mlc.CONF_CONNECTION, mlc.CONF_CONNECTION_PUSH)
        self.polling_period = max(
            config.get(mlc.CONF_POLLING_PERIOD, mlc.CONF_POLLING_PERIOD_DEFAULT),
            mlc.CONF_POLLING_PERIOD_MIN,
        )
        self.context = context  # type: ignore
        self._store = DeviceContextStore(api.hass, serial)
        self._unsub_polling = None
        super().__init__(
            serial,
            api=api,
            hass=api.hass,
            config_entry=config_entry,
            deviceentry_id={"identifiers": {(mlc.DOMAIN, serial)}},
        )
        self.client = WemoHttpClient(
            config[mlc.CONF_HOST],
            config.get(mlc.CONF_PORT, mlc.CONF_PORT_DEFAULT),
            logger=self,  # type: ignore (Loggable almost duck-compatible with logging.Logger)
            log_level_dump=self.VERBOSE,
        )
        dr.async_get(self.hass).async_get_or_create(
            config_entry_id=config_entry.entry_id,
            manufacturer="Belkin",
            name=config_entry.title,
            model=config.get(mlc.CONF_MODEL) or self.device_type,
            serial_number=serial,
            **self.deviceentry_id,  # type: ignore
        )

    # interface: ConfigEntryManager
    async def async_shutdown(self):
        if self._unsub_polling:
            self._unsub_polling.cancel()
            self._unsub_polling = None
        await super().async_shutdown()
        if self.context:
            # flush any pending (delayed) save
            await self._store.async_save(self.context)

    def get_logger_name(self) -> str:
        return f"{self.device_type}_{self.serial}"

    def loggable_diagnostic_state(self):
        return {
            "cache": dict(self.cache),
            "context": dict(self.context or {}),
        }

    # interface: self
    async def async_init(self):
        """Called by the integration setup before forwarding to platforms."""
        if self.context is None:
            self.context = await self._store.async_load() or {}

    def start(self):
        """
        Issues the initial refresh and starts polling when the device
        is configured as poll-only.
        """
        self.async_create_task(self.async_request_refresh(), ".start")
        if self.connection == mlc.CONF_CONNECTION_POLL:
            self._unsub_polling = self.schedule_async_callback(
                self.polling_period, self._async_polling_callback
            )

    def save_context(self):
        def _data_func():
            return self.context

        self._store.async_delay_save(_data_func, mlc.PARAM_CONTEXT_SAVE_DELAY)

    async def async_send_command(
        self, service: str, action: str, payload: "dict[str, Any] | None" = None
    ):
        self.log(self.DEBUG, "Sending %s %s", action, payload)
        return await self.client.async_send_command(service, action, payload)

    async def async_request_refresh(self):
        """
        Queries the device state. Failures are never fatal: they're just
        logged (at DEBUG level) and the next refresh/notification will fix things.
        """
        try:
            await self._async_refresh()
        except WemoError as error:
            self.log(
                self.DEBUG,
                "Refresh failed: %s (%s)",
                error.reason,
                str(error),
                timeout=mlc.PARAM_LOG_TIMEOUT,
            )

    async def _async_refresh(self):
        """Actual device kind refresh: raises WemoError on transport failures."""
        raise NotImplementedError("Called '_async_refresh' on wrong device type")

    async def _async_refresh_binarystate(self):
        """Common GetBinaryState refresh for basicevent devices."""
        response = await self.async_send_command(
            wc.SERVICE_BASICEVENT, wc.ACTION_GETBINARYSTATE
        )
        for key in (wc.KEY_BINARYSTATE, wc.KEY_BRIGHTNESS):
            if key in response:
                self.receive(key, response[key])
        return response

    async def _async_polling_callback(self):
        self._unsub_polling = self.schedule_async_callback(
            self.polling_period, self._async_polling_callback
        )
        await self.async_request_refresh()


def parse_binarystate(value) -> int:
    """
    BinaryState could come as a plain int or (Insight) as a pipe separated
    string starting with the state code.
    """
    return int(str(value).split("|", 1)[0])
