"""Error taxonomy for the settings store.

Services raise these; routers translate them into HTTP responses.
"""


class SettingsError(Exception):
    """Base class for settings store failures."""


class NotFoundError(SettingsError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Setting with key "{key}" not found')


class DuplicateKeyError(SettingsError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Setting with key "{key}" already exists')


class ValidationError(SettingsError):
    """A value does not fit the declared type of its setting."""


class CoercionError(ValidationError):
    """Stored text could not be parsed as its declared type."""


class TransactionError(SettingsError):
    """The storage layer failed while applying an atomic write."""


class ProvisioningError(SettingsError):
    """The settings relation could not be created or seeded."""
