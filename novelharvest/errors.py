from __future__ import annotations


class CatalogError(RuntimeError):
    """The catalog page could not be fetched or listed no chapters."""


class TransportError(RuntimeError):
    """A single fetch attempt failed before a body was obtained."""


class ExtractionError(RuntimeError):
    """A page was fetched but the expected elements were missing."""
