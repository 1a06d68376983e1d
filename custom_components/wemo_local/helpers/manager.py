import abc
import asyncio
import logging
from typing import TYPE_CHECKING

from homeassistant.core import callback

from . import LOGGER, Loggable, getLogger
from .. import const as mlc

if TYPE_CHECKING:
    from typing import (
        Any,
        Callable,
        Coroutine,
        Final,
        Mapping,
        NotRequired,
        TypedDict,
        Unpack,
    )

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from .component_api import WemoApi
    from .entity import WLEntity


class EntityManager(Loggable):
    """
    Owner of a set of WLEntity(s) bound to a single HA device entry.
    Both Wemo appliances and Link bulbs are EntityManagers. Only appliances
    are also bound to a ConfigEntry (see ConfigEntryManager) while bulbs share
    the one of their hub.
    Tasks spawned through async_create_task are tracked and cancelled
    on shutdown.
    """

    if TYPE_CHECKING:

        class DeviceEntryIdType(TypedDict):
            identifiers: set[tuple[str, str]]

        type PlatformsType = dict[str, Callable | None]

        api: Final[WemoApi]
        hass: Final[HomeAssistant]
        config_entry: Final[ConfigEntry | None]
        deviceentry_id: Final[DeviceEntryIdType | None]
        platforms: PlatformsType
        entities: Final[dict[object, WLEntity]]
        _tasks: Final[set[asyncio.Task]]

        class Args(Loggable.Args):
            api: WemoApi
            hass: HomeAssistant
            config_entry: NotRequired[ConfigEntry]
            deviceentry_id: NotRequired["EntityManager.DeviceEntryIdType"]

    # ConfigEntryManager slots live here too since WemoDevice
    # multiple inheritance would otherwise end up in a layout conflict
    __slots__ = (
        "api",
        "hass",
        "config_entry",
        "deviceentry_id",
        "entities",
        "platforms",
        "config",
        "_tasks",
        "_unsub_entry_update_listener",
    )

    def __init__(self, id: str, **kwargs: "Unpack[Args]"):
        self.api = kwargs["api"]
        self.hass = kwargs["hass"]
        self.config_entry = kwargs.get("config_entry")
        self.deviceentry_id = kwargs.get("deviceentry_id")
        self.entities = {}
        self._tasks = set()
        super().__init__(id, **kwargs)

    async def async_shutdown(self):
        """
        Stops any pending work and releases the entities.
        Derived classes holding direct references to their entities must
        clear them only after calling this.
        """
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel("shutdown")
        if pending:
            self.log(self.DEBUG, "Cancelling %d pending task(s)", len(pending))
            done, not_done = await asyncio.wait(pending, timeout=0.1)
            for task in done:
                if not task.cancelled() and (exception := task.exception()):
                    self.log_exception(
                        self.WARNING, exception, "task %s during shutdown", task
                    )
            if not_done:
                self.log(self.DEBUG, "Tasks still running after shutdown %s", not_done)
        for entity in list(self.entities.values()):
            await entity.async_shutdown()

    @property
    def name(self) -> str:
        config_entry = self.config_entry
        return config_entry.title if config_entry else self.logtag

    def managed_entities(self, platform: str):
        return [
            entity for entity in self.entities.values() if entity.PLATFORM == platform
        ]

    def generate_unique_id(self, entity: "WLEntity"):
        return f"{self.id}_{entity.id}"

    def schedule_callback(
        self, delay: float, target: "Callable", *args
    ) -> "asyncio.TimerHandle":
        return self.hass.loop.call_later(delay, target, *args)

    def schedule_async_callback(
        self, delay: float, target: "Callable[..., Coroutine]", *args
    ) -> "asyncio.TimerHandle":
        """Like schedule_callback but for coroutine functions (run as tracked tasks)."""
        return self.hass.loop.call_later(
            delay, lambda: self.async_create_task(target(*args), ".timer")
        )

    @callback
    def async_create_task(
        self, target: "Coroutine", name: str, eager_start: bool = True
    ) -> "asyncio.Task":
        task = self.hass.async_create_task(target, f"{self.logtag}{name}", eager_start)
        if not task.done():
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return task


class ConfigEntryManager(EntityManager):
    """
    An EntityManager owning a ConfigEntry: it forwards the entry setup to
    the platforms its entities need and reloads the entry when options change.
    Every entry gets a dedicated logger (see configure_logger) whose level
    comes from the entry options.
    """

    if TYPE_CHECKING:
        config: Mapping[str, Any]
        logger: logging.Logger
        _unsub_entry_update_listener: CALLBACK_TYPE | None

        class Args(EntityManager.Args):
            pass

    def __init__(self, id: str, **kwargs: "Unpack[Args]"):
        self.config = kwargs["config_entry"].data  # type: ignore
        # platform -> async_add_entities. Entities register their platform here
        # when built and the platform setup fills in the callback
        self.platforms = {}
        self._unsub_entry_update_listener = None
        super().__init__(id, **kwargs)

    async def async_shutdown(self):
        self._unlisten_entry_update()
        await super().async_shutdown()

    # interface: Loggable
    def configure_logger(self):
        self.logtag = self.get_logger_name()
        self.logger = logger = getLogger(f"{LOGGER.name}.{self.logtag}")
        try:
            logger.setLevel(self.config.get(mlc.CONF_LOGGING_LEVEL, logging.NOTSET))
        except (TypeError, ValueError) as error:
            # our own log() is not usable until the logger is set
            LOGGER.warning(
                "%s: invalid logging level in configuration (%s)", self.logtag, error
            )

    def log(self, level: int, msg: str, *args, **kwargs):
        logger = self.logger
        if logger.isEnabledFor(level):
            logger._log(level, msg, args, **kwargs)

    # interface: self
    @abc.abstractmethod
    def get_logger_name(self) -> str:
        raise NotImplementedError()

    async def async_setup_entry(
        self, hass: "HomeAssistant", config_entry: "ConfigEntry"
    ):
        config_entry.runtime_data = self
        await hass.config_entries.async_forward_entry_setups(
            config_entry, list(self.platforms)
        )
        self._unsub_entry_update_listener = config_entry.add_update_listener(
            self.entry_update_listener
        )

    async def async_unload_entry(
        self, hass: "HomeAssistant", config_entry: "ConfigEntry"
    ) -> bool:
        if not await hass.config_entries.async_unload_platforms(
            config_entry, list(self.platforms)
        ):
            return False
        self._unlisten_entry_update()
        self.platforms.clear()
        await self.async_shutdown()
        return True

    async def entry_update_listener(
        self, hass: "HomeAssistant", config_entry: "ConfigEntry"
    ):
        # options drive entity construction (Link bulbs, metering) and timers
        self.log(self.DEBUG, "Configuration changed: reloading")
        hass.config_entries.async_schedule_reload(config_entry.entry_id)

    def loggable_diagnostic_state(self) -> dict:
        return {}

    async def async_get_diagnostics(self):
        return {
            "config": dict(self.config),
            "state": self.loggable_diagnostic_state(),
        }

    def _unlisten_entry_update(self):
        if self._unsub_entry_update_listener:
            self._unsub_entry_update_listener()
            self._unsub_entry_update_listener = None
