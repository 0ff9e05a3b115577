"""Process-wide registry of user-defined column types."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, Union

logger = logging.getLogger(__name__)


class CustomType:
    """Base class for user-defined column types.

    Subclasses set ``name`` and may override the value conversions used
    when a default value is compiled into DDL or a value is read back.
    """

    name: str = ""

    def to_database(self, value: Any) -> Any:
        return value

    def to_python(self, value: Any) -> Any:
        return value


@dataclass(frozen=True)
class RegisteredType:
    identifier: str
    native_name: str
    handler: CustomType


class CustomTypeRegistry:
    """Maps a type identifier to its native type name and handler.

    Registration is idempotent: registering an identifier that is already
    present leaves the first entry in place.
    """

    def __init__(self):
        self._types: Dict[str, RegisteredType] = {}

    def register(
        self,
        identifier: str,
        native_name: str,
        handler: Union[CustomType, Type[CustomType], None] = None,
    ) -> RegisteredType:
        key = identifier.lower()
        existing = self._types.get(key)
        if existing is not None:
            logger.debug("Type '%s' already registered as %s", key, existing.native_name)
            return existing

        if handler is None:
            handler = CustomType()
        elif isinstance(handler, type):
            handler = handler()

        entry = RegisteredType(identifier=key, native_name=native_name.upper(), handler=handler)
        self._types[key] = entry
        logger.debug("Registered type '%s' -> %s", key, entry.native_name)
        return entry

    def has(self, identifier: str) -> bool:
        return identifier.lower() in self._types

    def get(self, identifier: str) -> Optional[RegisteredType]:
        return self._types.get(identifier.lower())

    def find_by_native(self, native_name: str) -> Optional[RegisteredType]:
        """Find the registered type whose native name matches a catalog type."""
        native = native_name.lower().split("(")[0].strip()
        for entry in self._types.values():
            if entry.native_name.lower() == native:
                return entry
        return None

    def identifiers(self) -> List[str]:
        return list(self._types)

    def unregister(self, identifier: str) -> None:
        self._types.pop(identifier.lower(), None)

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, identifier: str) -> bool:
        return self.has(identifier)


# Global registry instance
registry = CustomTypeRegistry()
