"""Registry errors."""


class RegistryError(Exception):
    """Base exception for registry operations."""


class StoreCorruptError(RegistryError):
    """Raised when the persisted registry cannot be parsed."""
