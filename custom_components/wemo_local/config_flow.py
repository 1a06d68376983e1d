"""Config flow for Wemo local LAN integration."""

from contextlib import contextmanager
from enum import StrEnum
import typing

from homeassistant import config_entries as ce
from homeassistant.const import CONF_ERROR
import voluptuous as vol

from . import const as mlc
from .helpers import LOGGER
from .wemoclient import WemoError, const as wc
from .wemoclient.httpclient import WemoHttpClient

# helper conf keys not persisted to config
DESCR = "suggested_value"
ERR_BASE = "base"


class FlowErrorKey(StrEnum):
    """These error keys are common to both Config and Options flows"""

    CANNOT_CONNECT = "cannot_connect"
    UNSUPPORTED_DEVICE = "unsupported_device"


class FlowError(Exception):
    def __init__(self, key: FlowErrorKey):
        super().__init__(key)
        self.key = key


class WemoFlowHandlerMixin(
    ce.ConfigEntryBaseFlow if typing.TYPE_CHECKING else object
):
    """Mixin providing commons for Config and Option flows"""

    VERSION = 1
    MINOR_VERSION = 1

    # instance properties managed with show_form_errorcontext
    # and async_show_form_with_errors
    _config_schema: dict
    _errors: dict[str, str] | None

    @contextmanager
    def show_form_errorcontext(self):
        """Context manager to catch and show exceptions errors in the user form.
        The CONF_ERROR key will be added as a string label to the UI schema
        containing the exception message so to provide better (untranslated)
        error context."""
        try:
            self._config_schema = {}
            self._errors = None
            yield
        except FlowError as error:
            self._errors = {ERR_BASE: error.key.value}
        except WemoError as error:
            self._errors = {ERR_BASE: FlowErrorKey.CANNOT_CONNECT.value}
            self._config_schema = {
                vol.Optional(
                    CONF_ERROR,
                    description={DESCR: f"{error.reason} ({str(error)})"},
                ): str
            }

    def async_show_form_with_errors(
        self,
        step_id: str,
        *,
        config_schema: dict = {},
        description_placeholders: typing.Mapping[str, str | None] | None = None,
    ):
        """modularize errors managment: use together with show_form_errorcontext"""
        return super().async_show_form(
            step_id=step_id,
            data_schema=vol.Schema(self._config_schema | config_schema),
            errors=self._errors,
            description_placeholders=description_placeholders,
        )

    @staticmethod
    def merge_userinput(config, user_input: dict, *nullable_keys):
        """
        (dict) merge user_input into the current configuration taking care of
        empty values that HA frontend returns as 'no keys' in the payload.
        """
        config.update(user_input)
        for key in nullable_keys:
            if key not in user_input:
                config.pop(key, None)
        config.pop(CONF_ERROR, None)

    @staticmethod
    def connection_schema(config: mlc.DeviceConfigType) -> dict:
        return {
            vol.Required(
                mlc.CONF_CONNECTION,
                default=config.get(mlc.CONF_CONNECTION, mlc.CONF_CONNECTION_POLL),  # type: ignore
            ): vol.In(mlc.CONF_CONNECTION_OPTIONS),
            vol.Required(
                mlc.CONF_POLLING_PERIOD,
                default=config.get(  # type: ignore
                    mlc.CONF_POLLING_PERIOD, mlc.CONF_POLLING_PERIOD_DEFAULT
                ),
            ): vol.All(vol.Coerce(int), vol.Range(min=mlc.CONF_POLLING_PERIOD_MIN)),
        }


class ConfigFlow(WemoFlowHandlerMixin, ce.ConfigFlow, domain=mlc.DOMAIN):
    """Handle a config flow for Wemo local LAN."""

    @staticmethod
    def async_get_options_flow(config_entry):
        return OptionsFlow()

    async def async_step_user(self, user_input=None):
        device_config: mlc.DeviceConfigType = {}  # type: ignore

        with self.show_form_errorcontext():
            if user_input:
                self.merge_userinput(device_config, user_input)
                host = user_input[mlc.CONF_HOST]
                port = user_input.get(mlc.CONF_PORT, mlc.CONF_PORT_DEFAULT)
                setup = await WemoHttpClient(host, port, logger=LOGGER).async_get_setup()
                if not (
                    device_type := mlc.UPNP_DEVICE_TYPE_MAP.get(
                        setup.get(wc.KEY_DEVICETYPE)  # type: ignore
                    )
                ):
                    raise FlowError(FlowErrorKey.UNSUPPORTED_DEVICE)
                if not (serial := setup.get(wc.KEY_SERIALNUMBER)):
                    raise FlowError(FlowErrorKey.UNSUPPORTED_DEVICE)
                await self.async_set_unique_id(serial)
                self._abort_if_unique_id_configured(
                    updates={mlc.CONF_HOST: host, mlc.CONF_PORT: port}
                )
                device_config[mlc.CONF_PORT] = port
                device_config[mlc.CONF_SERIAL] = serial
                device_config[mlc.CONF_DEVICE_TYPE] = device_type
                if model := setup.get(wc.KEY_MODELNAME):
                    device_config[mlc.CONF_MODEL] = model
                return self.async_create_entry(
                    title=setup.get(wc.KEY_FRIENDLYNAME) or f"Wemo {serial}",
                    data=device_config,
                )

        config_schema = {
            vol.Required(
                mlc.CONF_HOST,
                description={DESCR: (user_input or {}).get(mlc.CONF_HOST)},
            ): str,
            vol.Required(mlc.CONF_PORT, default=mlc.CONF_PORT_DEFAULT): vol.All(  # type: ignore
                vol.Coerce(int), vol.Range(min=1, max=65535)
            ),
        }
        config_schema.update(self.connection_schema(user_input or {}))  # type: ignore
        return self.async_show_form_with_errors("user", config_schema=config_schema)


class OptionsFlow(WemoFlowHandlerMixin, ce.OptionsFlow):
    """
    Manage device options configuration. Any change is saved to the
    entry data which in turn reloads the entry.
    """

    async def async_step_init(self, user_input=None):
        config: mlc.DeviceConfigType = dict(self.config_entry.data)  # type: ignore
        device_type = config[mlc.CONF_DEVICE_TYPE]

        if user_input is not None:
            if mlc.CONF_SUBDEVICES in user_input:
                user_input[mlc.CONF_SUBDEVICES] = [
                    device_id.strip()
                    for device_id in user_input[mlc.CONF_SUBDEVICES].split(",")
                    if device_id.strip()
                ]
            self.merge_userinput(config, user_input)
            self.hass.config_entries.async_update_entry(self.config_entry, data=config)
            return self.async_create_entry(data=None)  # type: ignore

        config_schema = self.connection_schema(config)
        if device_type == mlc.DEVICE_TYPE_DIMMER:
            config_schema[
                vol.Required(
                    mlc.CONF_BRIGHTNESS_STEP,
                    default=config.get(  # type: ignore
                        mlc.CONF_BRIGHTNESS_STEP, mlc.CONF_BRIGHTNESS_STEP_DEFAULT
                    ),
                )
            ] = vol.All(vol.Coerce(int), vol.Range(min=1, max=100))
        elif device_type == mlc.DEVICE_TYPE_INSIGHT:
            config_schema[
                vol.Required(
                    mlc.CONF_SHOW_TODAY_TC,
                    default=config.get(mlc.CONF_SHOW_TODAY_TC, False),  # type: ignore
                )
            ] = bool
            config_schema[
                vol.Required(
                    mlc.CONF_WATT_DIFF,
                    default=config.get(mlc.CONF_WATT_DIFF, mlc.CONF_WATT_DIFF_DEFAULT),  # type: ignore
                )
            ] = vol.All(vol.Coerce(int), vol.Range(min=1))
            config_schema[
                vol.Required(
                    mlc.CONF_TIME_DIFF,
                    default=config.get(mlc.CONF_TIME_DIFF, mlc.CONF_TIME_DIFF_DEFAULT),  # type: ignore
                )
            ] = vol.All(vol.Coerce(int), vol.Range(min=1))
        elif device_type == mlc.DEVICE_TYPE_BRIDGE:
            config_schema[
                vol.Optional(
                    mlc.CONF_SUBDEVICES,
                    default=",".join(config.get(mlc.CONF_SUBDEVICES, ())),  # type: ignore
                )
            ] = str
        config_schema[
            vol.Optional(
                mlc.CONF_LOGGING_LEVEL,
                default=config.get(mlc.CONF_LOGGING_LEVEL, 0),  # type: ignore
            )
        ] = vol.In(mlc.CONF_LOGGING_LEVEL_OPTIONS)

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(config_schema),
            description_placeholders={
                "device_type": device_type,
                "serial": config[mlc.CONF_SERIAL],
            },
        )
