"""Exceptions raised by the index operations."""

from __future__ import annotations


class DDBError(Exception):
    """Base class for errors that abort an index operation."""


class FSError(DDBError):
    """A path given to an operation is missing or unusable."""


class PathContainmentError(FSError):
    """A path given to add/remove lies outside the index root."""


class InitError(DDBError):
    """The index cannot be created at the requested location."""


class DBError(DDBError):
    """The storage layer failed; the enclosing transaction was rolled back."""
