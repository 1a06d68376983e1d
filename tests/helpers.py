import asyncio
import contextlib
from copy import deepcopy
from datetime import datetime, timedelta
import logging
import re
import typing
from unittest.mock import patch

from freezegun.api import freeze_time
from homeassistant import config_entries, const as hac
from homeassistant.helpers import entity_registry as er
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_fire_time_changed_exact,
)

from custom_components.wemo_local import const as mlc
from custom_components.wemo_local.config_flow import ConfigFlow
from custom_components.wemo_local.diagnostics import async_get_config_entry_diagnostics
from custom_components.wemo_local.wemoclient import WemoError
from custom_components.wemo_local.wemoclient.httpclient import WemoHttpClient

from . import const as tc

if typing.TYPE_CHECKING:
    from typing import Any, Final, Mapping, NotRequired, TypedDict, Unpack

    from freezegun.api import (
        FrozenDateTimeFactory,
        StepTickTimeFactory,
        TickingDateTimeFactory,
        _Freezable,
    )

    _TimeFactory = FrozenDateTimeFactory | StepTickTimeFactory | TickingDateTimeFactory

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from pytest import LogCaptureFixture

    from custom_components.wemo_local.helpers.component_api import WemoApi
    from custom_components.wemo_local.wemo_device import WemoDevice

LOGGER = logging.getLogger("wemo_local.tests")

WEMO_LOCAL_LOGGER: "Final" = r"custom_components\.wemo_local.*"


def pop_logs(
    caplog: "LogCaptureFixture",
    level: int | None = None,
    message: str = r".*",
    name: str = WEMO_LOCAL_LOGGER,
):
    """Removes (and returns) the records matching from the caplog context."""
    p_name = re.compile(name)
    p_message = re.compile(message)
    records = caplog.records
    pop = [
        record
        for record in records
        if (level is None or record.levelno == level)
        and p_name.match(record.name)
        and p_message.match(record.getMessage())
    ]
    for record in pop:
        records.remove(record)
    return pop


class TimeMocker(contextlib.AbstractContextManager):
    """
    time mocker helper using freeztime and providing some helpers
    to integrate time changes with HA core mechanics.
    Beware: asyncio.sleep will never return while time is frozen so
    device debouncing must be disabled (see 'no_delays' fixture)
    """

    time: "_TimeFactory"

    __slots__ = (
        "hass",
        "time",
        "_freeze_time",
    )

    def __init__(
        self, hass: "HomeAssistant", time_to_freeze: "_Freezable | None" = None
    ):
        super().__init__()
        self.hass = hass
        self._freeze_time = freeze_time(time_to_freeze)
        hass.loop.slow_callback_duration = 2.1

    def __enter__(self):
        self.time = self._freeze_time.start()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self._freeze_time.stop()

    def __call__(self):
        return self.time()

    async def async_tick(self, tick: timedelta | float | int):
        self.time.tick(tick if isinstance(tick, timedelta) else timedelta(seconds=tick))
        async_fire_time_changed_exact(self.hass)
        await self.hass.async_block_till_done()

    async def async_move_to(self, target_datetime: datetime):
        self.time.move_to(target_datetime)
        async_fire_time_changed_exact(self.hass)
        await self.hass.async_block_till_done()

    async def async_warp(
        self,
        timeout: float | int | timedelta,
        tick: float | int | timedelta = 1,
    ):
        """Advances time up to timeout by fixed steps (tick) running HA events."""
        if not isinstance(timeout, timedelta):
            timeout = timedelta(seconds=timeout)
        if not isinstance(tick, timedelta):
            tick = timedelta(seconds=tick)
        time_end = self.time() + timeout
        time_next = self.time() + tick
        while self.time() < time_end:
            await self.async_move_to(time_next)
            time_next = time_next + tick


class FakeTransport:
    """
    Replaces WemoHttpClient.async_send_command with scripted replies.
    Every command is recorded in 'calls' as (service, action, payload).
    """

    __slots__ = (
        "responses",
        "failures",
        "calls",
    )

    def __init__(self, responses: "Mapping[str, Mapping[str, Any]] | None" = None):
        self.responses: dict[str, dict[str, Any]] = deepcopy(dict(responses or {}))
        self.failures: dict[str, WemoError] = {}
        self.calls: list[tuple[str, str, dict | None]] = []

    async def async_send_command(
        self, service: str, action: str, payload: "Mapping[str, Any] | None" = None
    ):
        self.calls.append((service, action, dict(payload) if payload else None))
        if error := self.failures.get(action):
            raise error
        return dict(self.responses.get(action, {}))

    def patch(self):
        # a bound method doesn't rebind when accessed through the client instances
        return patch.object(
            WemoHttpClient, "async_send_command", new=self.async_send_command
        )

    def fail(self, action: str, error: WemoError | None = None):
        self.failures[action] = error or WemoError("connection refused")

    def recover(self, action: str | None = None):
        if action:
            self.failures.pop(action, None)
        else:
            self.failures.clear()

    def payloads(self, action: str):
        return [payload for _, _action, payload in self.calls if _action == action]

    def reset(self):
        self.calls.clear()


class ConfigEntryMocker(contextlib.AbstractAsyncContextManager):

    if typing.TYPE_CHECKING:

        class Args(TypedDict):
            data: NotRequired[Mapping[str, Any]]
            auto_add: NotRequired[bool]
            auto_setup: NotRequired[bool]

        hass: Final[HomeAssistant]
        config_entry: Final[ConfigEntry[WemoDevice]]
        config_entry_id: Final
        auto_setup: Final

    __slots__ = (
        "hass",
        "config_entry",
        "config_entry_id",
        "auto_setup",
    )

    def __init__(
        self,
        hass: "HomeAssistant",
        unique_id: str,
        title: str,
        **kwargs: "Unpack[Args]",
    ) -> None:
        self.hass = hass
        config_entry_kwargs = {
            "domain": mlc.DOMAIN,
            "data": kwargs.get("data"),
            "version": ConfigFlow.VERSION,
            "unique_id": unique_id,
            "title": title,
        }
        if hac.MAJOR_VERSION >= 2024:
            config_entry_kwargs["minor_version"] = ConfigFlow.MINOR_VERSION
        self.config_entry = MockConfigEntry(**config_entry_kwargs)
        self.config_entry_id = self.config_entry.entry_id
        self.auto_setup = kwargs.get("auto_setup", True)
        if kwargs.get("auto_add", True):
            self.config_entry.add_to_hass(hass)

    @property
    def api_loaded(self):
        return mlc.DOMAIN in self.hass.data

    @property
    def api(self) -> "WemoApi":
        """Beware unsafe access: ensure the component is currently loaded"""
        return self.hass.data[mlc.DOMAIN]

    @property
    def manager(self):
        return self.config_entry.runtime_data

    @property
    def config_entry_loaded(self):
        return self.config_entry.state == config_entries.ConfigEntryState.LOADED

    async def async_setup(self):
        result = await self.hass.config_entries.async_setup(self.config_entry_id)
        await self.hass.async_block_till_done()
        return result

    async def async_unload(self):
        result = await self.hass.config_entries.async_unload(self.config_entry_id)
        await self.hass.async_block_till_done()
        return result

    async def async_test_config_entry_diagnostics(self):
        assert self.config_entry_loaded
        diagnostic = await async_get_config_entry_diagnostics(
            self.hass, self.config_entry
        )
        assert diagnostic
        return diagnostic

    async def __aenter__(self):
        if self.auto_setup:
            assert await self.async_setup()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        if self.config_entry.state.recoverable:
            assert await self.async_unload()
        return None


class DeviceContext(ConfigEntryMocker):
    """
    Sets up a configured device in HA talking to a FakeTransport
    preloaded with the default replies for its kind.
    """

    if typing.TYPE_CHECKING:

        class Args(ConfigEntryMocker.Args):
            responses: NotRequired[Mapping[str, Mapping[str, Any]]]

        serial: Final[str]
        device_type: Final[str]
        transport: Final[FakeTransport]

    __slots__ = (
        "serial",
        "device_type",
        "transport",
        "_patch",
    )

    def __init__(
        self,
        hass: "HomeAssistant",
        device_type: str,
        **kwargs: "Unpack[Args]",
    ):
        self.serial = serial = tc.MOCK_SERIALS[device_type]
        self.device_type = device_type
        data: mlc.DeviceConfigType = {
            mlc.CONF_HOST: tc.MOCK_HOST,
            mlc.CONF_PORT: mlc.CONF_PORT_DEFAULT,
            mlc.CONF_SERIAL: serial,
            mlc.CONF_DEVICE_TYPE: device_type,
            mlc.CONF_CONNECTION: mlc.CONF_CONNECTION_PUSH,
        }
        data.update(kwargs.get("data") or {})  # type: ignore
        kwargs["data"] = data
        super().__init__(hass, serial, f"Wemo {device_type}", **kwargs)
        self.transport = FakeTransport(
            tc.MOCK_RESPONSES[device_type] | dict(kwargs.get("responses") or {})
        )
        self._patch = self.transport.patch()

    @property
    def device(self) -> "WemoDevice":
        return self.api.devices[self.serial]  # type: ignore

    def entity_id(self, platform: str, entitykey: str, device_id: str | None = None):
        """Lookup the HA entity_id for one of our device (or subdevice) entities."""
        entity_id = er.async_get(self.hass).async_get_entity_id(
            platform, mlc.DOMAIN, f"{device_id or self.serial}_{entitykey}"
        )
        assert entity_id, f"missing {platform} entity '{entitykey}'"
        return entity_id

    def state(self, platform: str, entitykey: str, device_id: str | None = None):
        state = self.hass.states.get(self.entity_id(platform, entitykey, device_id))
        assert state
        return state

    async def __aenter__(self):
        self._patch.start()
        return await super().__aenter__()

    async def __aexit__(self, exc_type, exc_value, traceback):
        try:
            return await super().__aexit__(exc_type, exc_value, traceback)
        finally:
            self._patch.stop()

    async def async_setup(self):
        assert not self.config_entry_loaded
        result = await super().async_setup()
        assert self.device
        return result

    async def async_unload(self):
        """Asserts the config_entry will be correctly unloaded and the device cleaned up"""
        result = await super().async_unload()
        assert not (self.api_loaded and self.api.devices.get(self.serial))
        return result

    async def async_wait_revert(self):
        """Lets the revert timer of a failed write expire."""
        await asyncio.sleep(mlc.PARAM_REVERT_DELAY * 2)
        await self.hass.async_block_till_done()
