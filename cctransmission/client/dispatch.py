"""Generic accessors for the daemon's simple preferences.

Each preference in :data:`SIMPLE_PROPERTIES` shares one wire shape:

- read:  ``["get-<name>", tag]`` answered by ``[name, value]``
- write: ``[name, value, tag]`` answered by ``["succeeded"]``

so two methods cover all of them instead of one method per preference.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from cctransmission.models import EncryptionMode
from cctransmission.utils.exceptions import InvalidArgumentError, UnknownPropertyError

if TYPE_CHECKING:
    from cctransmission.client.protocol import Response

logger = logging.getLogger(__name__)

SIMPLE_PROPERTIES: tuple[str, ...] = (
    "automap",
    "autostart",
    "directory",
    "downlimit",
    "encryption",
    "pex",
    "port",
    "uplimit",
)

_SIMPLE_PROPERTY_SET = frozenset(SIMPLE_PROPERTIES)


def check_property(name: str) -> str:
    """Return ``name`` if it is a simple preference.

    Raises:
        UnknownPropertyError: for any other name

    """
    if name not in _SIMPLE_PROPERTY_SET:
        msg = f"Unknown property {name!r}"
        raise UnknownPropertyError(msg, {"allowed": list(SIMPLE_PROPERTIES)})
    return name


def _check_value(name: str, value: Any) -> Any:
    if name == "encryption":
        try:
            return EncryptionMode(value).value
        except ValueError as e:
            allowed = ", ".join(mode.value for mode in EncryptionMode)
            msg = f"encryption must be one of: {allowed}"
            raise InvalidArgumentError(msg, {"value": value}) from e
    if value is None:
        msg = f"A value is required to set {name!r}"
        raise InvalidArgumentError(msg)
    return value


class PropertyDispatchMixin(ABC):
    """Adds ``get``/``set`` for simple preferences to a session."""

    @abstractmethod
    def request(self, name: str, *args: Any) -> Response:
        """Send one command and return the daemon's reply."""

    def get(self, name: str) -> Any:
        """Read a simple preference.

        Returns:
            The daemon's value, or None if the daemon did not answer with it

        """
        check_property(name)
        response = self.request(f"get-{name}")
        if response.status != name:
            logger.debug("Daemon did not report %s (status %r)", name, response.status)
            return None
        return response.payload

    def set(self, name: str, value: Any) -> bool:
        """Write a simple preference.

        Returns:
            True if the daemon accepted the value, False if it refused it

        """
        check_property(name)
        value = _check_value(name, value)
        response = self.request(name, value)
        if not response.succeeded:
            logger.info("Daemon refused %s=%r (status %r)", name, value, response.status)
            return False
        return True

    def properties(self) -> dict[str, Any]:
        """Read every simple preference."""
        return {name: self.get(name) for name in SIMPLE_PROPERTIES}
