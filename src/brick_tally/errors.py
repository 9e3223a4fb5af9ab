"""Exception taxonomy shared by the ledger, provider, gateway and sync path."""


class BrickTallyError(Exception):
    """Base exception for all Brick-Tally failures."""


class ValidationError(BrickTallyError):
    """A manifest entry is malformed; nothing is persisted.

    ``errors`` holds one human-readable message per offending entry.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid manifest")


class ProviderError(BrickTallyError):
    """The external parts catalog could not be queried."""


class NotFound(ProviderError):
    """The requested set does not exist at the provider."""


class SyncError(BrickTallyError):
    """A remote change notification could not be applied."""


class PersistenceError(BrickTallyError):
    """The persistence gateway rejected or failed an operation."""


class SessionNotFound(PersistenceError):
    """No session exists for the given capability token."""
