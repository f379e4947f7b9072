# storefront/domain/errors.py


class StorefrontError(Exception):
    """Base class for errors raised by the storefront services."""


class Unauthenticated(StorefrontError):
    """A cart or order operation was attempted without a signed-in user."""

    def __init__(self, message: str = "Please sign in to continue"):
        super().__init__(message)


class RemoteFailure(StorefrontError):
    """Any failure of the remote data or auth collaborator."""


class NotFound(RemoteFailure):
    """The addressed row does not exist (or is not visible to the user)."""


class MutationBusy(StorefrontError):
    """Another cart mutation for the same user held the lock for too long."""
