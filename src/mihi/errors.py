"""Exceptions raised by mihi."""


class MihiError(Exception):
    """Base class for all errors raised by this application."""


class StoreError(MihiError):
    """The item store failed to read or write."""


class StoreUnavailable(StoreError):
    """The item store cannot be reached at all."""


class InvalidFilter(MihiError):
    """Session filters reference a tag or exercise kind that does not exist."""


class InvalidItem(MihiError):
    """A practice item references a missing word or exercise, or an exercise
    that does not apply to the given word."""


class DuplicateEntry(MihiError):
    """A word, tag or exercise with the same name already exists."""
