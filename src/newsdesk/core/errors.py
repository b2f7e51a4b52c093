from __future__ import annotations


class NewsdeskError(Exception):
    """Base exception for the service."""
    pass


class SourceError(NewsdeskError):
    """An upstream news or quote source failed (transport or parse)."""
    pass


class SummarizerError(NewsdeskError):
    """The hosted summarization service failed or returned nothing usable."""
    pass


class StoreError(NewsdeskError):
    """The datastore could not serve a read."""
    pass
