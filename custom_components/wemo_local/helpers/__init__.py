"""
Shared plumbing: value helpers, the error raised on failed commands and
the logging layer used by devices and entities.
"""

import abc
from contextlib import contextmanager
import logging
from time import monotonic
import typing

from homeassistant import const as hac
from homeassistant.exceptions import HomeAssistantError

from .. import const as mlc

if typing.TYPE_CHECKING:
    from typing import Any, ClassVar, Final, NotRequired, TypedDict, Unpack


def clamp(value, minimum, maximum):
    return minimum if value <= minimum else maximum if value >= maximum else value


class DeviceNotRespondingError(HomeAssistantError):
    """Raised to the service caller when a command could not reach the device."""

    def __init__(self, device_name: str, reason: str):
        super().__init__(f"{device_name} is not responding ({reason})")
        self.reason = reason


class _TimeoutLogger(logging.Logger if typing.TYPE_CHECKING else object):
    """
    Mixin grafted on a standard Logger (see getLogger) adding a 'timeout='
    keyword to every log call: a message (format string and args) logged with
    a timeout is dropped when already emitted less than 'timeout' seconds ago.
    Unreachable devices would otherwise flood the log at every poll.
    """

    if typing.TYPE_CHECKING:
        _TRAPS: ClassVar[dict[tuple, float]]
        _HOOKED_CLASSES: ClassVar[dict[type, type]]

    _TRAPS = {}
    """last emission time of every trapped message (shared among loggers)"""
    _HOOKED_CLASSES = {}

    def _log(self, level, msg, args, **kwargs):
        timeout = kwargs.pop("timeout", None)
        if timeout is not None:
            now = monotonic()
            trap = (msg, args)
            last = _TimeoutLogger._TRAPS.get(trap)
            if last is not None and (now - last) < timeout:
                if self.isEnabledFor(mlc.CONF_LOGGING_VERBOSE):
                    super()._log(
                        mlc.CONF_LOGGING_VERBOSE, f"(muted) {msg}", args, **kwargs
                    )
                return
            _TimeoutLogger._TRAPS[trap] = now
        super()._log(level, msg, args, **kwargs)

    @staticmethod
    def reset_traps():
        _TimeoutLogger._TRAPS.clear()


def getLogger(name: str) -> logging.Logger:
    """
    logging.getLogger replacement returning a logger supporting 'timeout='.
    The instance class is swapped in place so that loggers already handed out
    (HA reloads entries reusing the same names) are hooked only once.
    """
    logger = logging.getLogger(name)
    logger_class = logger.__class__
    hooks = _TimeoutLogger._HOOKED_CLASSES
    if logger_class not in hooks.values():
        if logger_class not in hooks:
            hooks[logger_class] = type(
                "TimeoutLogger", (_TimeoutLogger, logger_class), {}
            )
        logger.__class__ = hooks[logger_class]
    return logger


LOGGER = getLogger(__name__.rsplit(".", 1)[0])
"""custom_components.wemo_local"""


class Loggable(abc.ABC):
    """
    Base for objects logging on behalf of a device: every message gets
    prefixed with 'logtag' and forwarded to 'logger' which is either a real
    logger or the owning Loggable (entities log through their device so that
    the per-device log level applies).
    """

    if typing.TYPE_CHECKING:
        id: Final[Any]
        logtag: str
        logger: "Loggable | logging.Logger"

        class Args(TypedDict):
            logger: NotRequired["Loggable | logging.Logger"]

    hac = hac

    VERBOSE = mlc.CONF_LOGGING_VERBOSE
    DEBUG = mlc.CONF_LOGGING_DEBUG
    INFO = mlc.CONF_LOGGING_INFO
    WARNING = mlc.CONF_LOGGING_WARNING

    __slots__ = ("id", "logtag", "logger")

    def __init__(self, id, **kwargs: "Unpack[Args]"):
        self.id = id
        self.logger = kwargs.get("logger", LOGGER)
        self.configure_logger()
        self.log(self.DEBUG, "init")

    def __repr__(self):
        return f"{self.__class__.__name__}({self.id})"

    def configure_logger(self):
        self.logtag = repr(self)

    def isEnabledFor(self, level: int):
        return self.logger.isEnabledFor(level)

    def log(self, level: int, msg: str, *args, **kwargs):
        self.logger.log(level, f"{self.logtag}: {msg}", *args, **kwargs)

    def log_exception(
        self, level: int, exception: Exception, msg: str, *args, **kwargs
    ):
        self.log(
            level, f"{type(exception).__name__}({exception}) in {msg}", *args, **kwargs
        )

    @contextmanager
    def exception_warning(self, msg: str, *args, **kwargs):
        """Logs (as a WARNING) and swallows any exception raised in the block."""
        try:
            yield
        except Exception as exception:
            self.log_exception(self.WARNING, exception, msg, *args, **kwargs)
