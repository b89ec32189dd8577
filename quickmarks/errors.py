from __future__ import annotations


class QuickmarksError(Exception):
    """Base class for errors raised by quickmarks."""


class StoreCorruptError(QuickmarksError):
    """The store file exists but does not hold a valid bookmarks document."""


class EntityNotFoundError(QuickmarksError):
    def __init__(self, kind: str, entity_id: int):
        super().__init__(f"{kind} {entity_id} does not exist")
        self.kind = kind
        self.entity_id = entity_id


class MissingFieldError(QuickmarksError):
    def __init__(self, field_id: str):
        super().__init__(f"form response has no field {field_id!r}")
        self.field_id = field_id


class ActionError(QuickmarksError):
    """An action request carried arguments that cannot be acted upon."""


class RequestError(QuickmarksError):
    """The host sent a request that does not match the protocol."""


class ConfigError(QuickmarksError):
    """The settings file cannot be used."""
