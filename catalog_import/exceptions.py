"""
Exceptions Module
Errors raised by the catalog import pipeline.
"""

from typing import Optional


class CatalogImportError(Exception):
    """Base class for catalog import errors."""


class CSVParseError(CatalogImportError):
    """The upload cannot be parsed at all (bad header, broken quoting)."""


class UploadRejectedError(CatalogImportError):
    """The upload failed the file type or size checks."""


class ConfigError(CatalogImportError):
    """A setting needed for the requested command is missing."""


class StoreError(CatalogImportError):
    """The remote store rejected a create call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
