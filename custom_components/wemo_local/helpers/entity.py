"""
Base classes for the wemo_local entities.

Platform entities are declared by mixing these with the HA entity class:
    class WLSwitch(WLBinaryEntity, SwitchEntity)

Entities only mirror the state pushed by their manager (a device adapter or a
Link bulb) and forward user requests back to it. Debouncing, quantization and
reverting failed writes all happen in the manager.
"""

import typing

from homeassistant.helpers.entity import Entity, EntityCategory

from . import Loggable

if typing.TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..wemo_device import WemoDeviceBase
    from .manager import EntityManager

    class WLEntityArgs(typing.TypedDict):
        name: typing.NotRequired[str | None]
        entity_category: typing.NotRequired[EntityCategory]

    class WLBinaryEntityArgs(WLEntityArgs):
        device_value: typing.NotRequired[bool]

    class WLNumericEntityArgs(WLEntityArgs):
        device_value: typing.NotRequired[int | float]
        native_unit_of_measurement: typing.NotRequired[str]
        suggested_display_precision: typing.NotRequired[int]


class WLEntity(Loggable, Entity if typing.TYPE_CHECKING else object):

    EntityCategory = EntityCategory

    PLATFORM: typing.ClassVar[str]

    manager: "WemoDeviceBase"

    # HA core entity attributes:
    has_entity_name: typing.Final[bool] = True
    should_poll: typing.Final[bool] = False
    # a device failing a refresh keeps showing its last known state
    available: typing.Final[bool] = True
    entity_category: EntityCategory | None = None
    device_class: typing.Final[object | str | None]
    name: str | None
    unique_id: str

    _hass_connected: bool

    __slots__ = (
        "manager",
        "device_class",
        "name",
        "unique_id",
        "_hass_connected",
    )

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        device_class: object | str | None = None,
        **kwargs: "typing.Unpack[WLEntityArgs]",
    ):
        """
        entitykey identifies the entity inside its manager and is part of the
        unique_id. name defaults to a capitalized entitykey: pass name=None for
        the 'main' entity of a device so it just takes the device name.
        """
        self.manager = manager  # type: ignore
        self.device_class = device_class
        Loggable.__init__(self, entitykey, logger=manager)
        if entitykey in manager.entities:
            raise AssertionError(f"entity '{entitykey}' already defined in {manager}")
        self.name = kwargs.pop(
            "name", entitykey.replace("_", " ").capitalize()
        )  # type: ignore
        if "entity_category" in kwargs:
            self.entity_category = kwargs.pop("entity_category")
        self.unique_id = manager.generate_unique_id(self)
        self._hass_connected = False
        manager.entities[entitykey] = self
        # platform callback is set when the entity is built after platform setup
        if async_add_entities := manager.platforms.setdefault(self.PLATFORM):
            async_add_entities([self])

    # interface: Entity
    @property
    def device_info(self):
        return self.manager.deviceentry_id

    async def async_added_to_hass(self):
        self._hass_connected = True
        await super().async_added_to_hass()

    async def async_will_remove_from_hass(self):
        self._hass_connected = False
        await super().async_will_remove_from_hass()

    # interface: self
    async def async_shutdown(self):
        self.manager.entities.pop(self.id)
        self.manager = None  # type: ignore

    def flush_state(self):
        if self._hass_connected:
            self.async_write_ha_state()


class WLBinaryEntity(WLEntity):
    """On/off entities: turn_on/turn_off are forwarded to async_request_onoff."""

    is_on: bool | None

    __slots__ = ("is_on",)

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        device_class: object | None = None,
        **kwargs: "typing.Unpack[WLBinaryEntityArgs]",
    ):
        self.is_on = kwargs.pop("device_value", None)
        super().__init__(manager, entitykey, device_class, **kwargs)

    def update_onoff(self, onoff: bool | None):
        if self.is_on != onoff:
            self.is_on = onoff
            self.flush_state()

    # interface: ToggleEntity
    async def async_turn_on(self, **kwargs):
        await self.manager.async_request_onoff(True)

    async def async_turn_off(self, **kwargs):
        await self.manager.async_request_onoff(False)


class WLNumericEntity(WLEntity):

    DEVICECLASS_TO_UNIT_MAP: typing.ClassVar[dict[object | None, str | None]]

    native_value: int | float | None
    native_unit_of_measurement: str | None
    suggested_display_precision: int | None

    __slots__ = (
        "native_value",
        "native_unit_of_measurement",
        "suggested_display_precision",
    )

    def __init__(
        self,
        manager: "EntityManager",
        entitykey: str,
        device_class: object | None = None,
        **kwargs: "typing.Unpack[WLNumericEntityArgs]",
    ):
        self.native_value = kwargs.pop("device_value", None)
        self.suggested_display_precision = kwargs.pop(
            "suggested_display_precision", None
        )
        self.native_unit_of_measurement = kwargs.pop(
            "native_unit_of_measurement", None
        ) or self.DEVICECLASS_TO_UNIT_MAP.get(device_class)
        super().__init__(manager, entitykey, device_class, **kwargs)

    def update_native_value(self, native_value: int | float | None):
        """Returns True when the value changed (and was flushed to HA)."""
        precision = self.suggested_display_precision
        if native_value is not None and precision is not None:
            native_value = round(native_value, precision)
        if self.native_value == native_value:
            return False
        self.native_value = native_value
        self.flush_state()
        return True


def platform_setup_entry(
    hass: "HomeAssistant", config_entry: "ConfigEntry", async_add_entities, platform: str
):
    """Shared body for every platform 'async_setup_entry'."""
    manager: "EntityManager" = config_entry.runtime_data
    manager.log(manager.DEBUG, "Setting up platform %s", platform)
    manager.platforms[platform] = async_add_entities
    async_add_entities(manager.managed_entities(platform))
