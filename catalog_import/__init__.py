"""
Bulk catalog import: parse product upload CSVs and create the products and
their variants in the remote store.
"""

from .creator import BulkProductCreator, ProductStore
from .exceptions import CatalogImportError, CSVParseError, StoreError, UploadRejectedError
from .models import (
    BulkResult, CreatedProduct, FailedProduct, ParseResult, ProductFields, ProductGroup,
    Progress, ValidationError, VariantOption, VariantRow,
)
from .parser import CatalogCSVParser
from .template import generate_csv_template
from .validator import RowValidator

__version__ = '1.0.0'
