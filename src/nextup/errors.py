"""Error taxonomy shared by the core, the services and the adapters."""


class NextupError(Exception):
    """Base class for all nextup errors."""

    pass


class ProviderUnavailable(NextupError):
    """Raised when the item provider cannot be reached or access is not granted."""

    pass


class DecodeFailure(NextupError):
    """Raised by strict decoders on a malformed persisted blob."""

    pass


class FetchFailure(NextupError):
    """Raised when one or more per-source queries failed."""

    def __init__(self, message: str, failures: dict[str, Exception] | None = None):
        super().__init__(message)
        self.failures = failures or {}


class PersistFailure(NextupError):
    """Raised when saving an item to the provider failed."""

    def __init__(self, message: str, item=None):
        super().__init__(message)
        self.item = item
