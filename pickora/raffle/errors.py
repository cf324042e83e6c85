"""Error taxonomy shared by the drawer, the result store and the HTTP layer."""


class PickoraError(Exception):
    """Base class for Pickora failures."""


class InvalidArgumentError(PickoraError, ValueError):
    """Malformed id, impossible winner request or malformed submission."""


class NotFoundError(PickoraError):
    """Valid id with no stored record."""


class StorageUnavailableError(PickoraError):
    """No storage backend is configured."""


class StorageError(PickoraError):
    """A configured backend failed at call time (network, auth, quota)."""
