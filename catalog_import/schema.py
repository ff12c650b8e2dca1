"""
Schema Module
Single description of the bulk upload CSV columns, shared by the parser and
the template generator.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


TEXT = 'text'
NUMBER = 'number'
BOOLEAN = 'boolean'
STATUS = 'status'
OPTION_NAME = 'option_name'
OPTION_VALUE = 'option_value'

VARIANT_TIERS = 3

TRUTHY_TOKENS = frozenset({'true', 'yes', 'y', '1'})
FALSY_TOKENS = frozenset({'false', 'no', 'n', '0'})
STATUS_TOKENS = ('active', 'inactive', 'draft')
DEFAULT_STATUS = 'active'


@dataclass(frozen=True)
class ColumnSpec:
    """One column of the upload file."""

    name: str
    kind: str = TEXT
    required: bool = False
    description: str = ''
    variant_only: bool = False


def _tier_columns() -> List[ColumnSpec]:
    columns = []
    for tier in range(1, VARIANT_TIERS + 1):
        columns.append(ColumnSpec(
            f'variant_tier_{tier}_name', OPTION_NAME,
            description=f'Option name for variant tier {tier} (e.g. Color)'
        ))
        columns.append(ColumnSpec(
            f'variant_tier_{tier}_value', OPTION_VALUE,
            description=f'Option value for variant tier {tier} (e.g. Red)'
        ))
    return columns


PRODUCT_CSV_SCHEMA: Tuple[ColumnSpec, ...] = tuple([
    ColumnSpec('product_name', TEXT, required=True, description='Product name, groups variant rows'),
    ColumnSpec('description', TEXT, description='Product description'),
    ColumnSpec('price', NUMBER, required=True, description='Base price, required on the first row of a product'),
    ColumnSpec('stock', NUMBER, description='Stock for products without variants'),
    ColumnSpec('is_digital', BOOLEAN, description='true/false'),
    ColumnSpec('weight', NUMBER, description='Weight in grams'),
    ColumnSpec('status', STATUS, description='active, inactive or draft'),
    ColumnSpec('has_notes', BOOLEAN, description='Whether buyers can leave notes'),
    ColumnSpec('image_url', TEXT, description='Main product image URL'),
] + _tier_columns() + [
    ColumnSpec('variant_price', NUMBER, variant_only=True, description='Variant price, defaults to price'),
    ColumnSpec('variant_stock', NUMBER, variant_only=True, description='Variant stock, defaults to stock'),
    ColumnSpec('variant_weight', NUMBER, variant_only=True, description='Variant weight in grams'),
    ColumnSpec('variant_sku', TEXT, variant_only=True, description='Variant SKU'),
    ColumnSpec('variant_image_url', TEXT, variant_only=True, description='Variant image URL'),
    ColumnSpec('variant_is_active', BOOLEAN, variant_only=True, description='true/false'),
    ColumnSpec('variant_description', TEXT, variant_only=True, description='Variant description'),
])

COLUMNS_BY_NAME: Dict[str, ColumnSpec] = {column.name: column for column in PRODUCT_CSV_SCHEMA}


def header() -> List[str]:
    """Column names in file order."""
    return [column.name for column in PRODUCT_CSV_SCHEMA]


def required_columns() -> List[str]:
    """Columns that must be present in an uploaded header."""
    return [column.name for column in PRODUCT_CSV_SCHEMA if column.required]


def tier_column_names(tier: int) -> Tuple[str, str]:
    """Return the (name, value) column pair for a variant tier."""
    return f'variant_tier_{tier}_name', f'variant_tier_{tier}_value'


def parse_boolean_token(value: str) -> bool:
    """
    Convert a boolean-like token to a bool.

    Args:
        value: Cell text, already known to be non-empty

    Returns:
        Parsed boolean

    Raises:
        ValueError: If the token is not recognised
    """
    token = value.strip().lower()
    if token in TRUTHY_TOKENS:
        return True
    if token in FALSY_TOKENS:
        return False
    raise ValueError(f"Unrecognised boolean value: {value}")
