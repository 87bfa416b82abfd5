"""Exceptions raised at the draftsnap boundary."""
from __future__ import annotations


class DraftSnapError(ValueError):
    """Base class for invariant violations caught at the adapter boundary."""


class InvalidEntityError(DraftSnapError):
    """An entity carries a malformed bbox, an unknown type or a bad payload."""


class UnsupportedElementError(DraftSnapError):
    """A segment operation was invoked on an element that has no segment."""


__all__ = ["DraftSnapError", "InvalidEntityError", "UnsupportedElementError"]
