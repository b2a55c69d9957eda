"""Domain exceptions for the sync engine."""


class RecibofastError(Exception):
    """Base exception for all sync engine errors."""
    pass


class MappingError(RecibofastError):
    """A remote record could not be mapped into a Document."""
    pass


class ReauthenticationError(RecibofastError):
    """Password confirmation failed; the guarded operation was aborted."""
    pass


class DocumentNotFoundError(RecibofastError):
    """Document does not exist or has been deleted."""
    pass
