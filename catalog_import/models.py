"""
Models Module
Typed records passed between the validator, the parser and the creator.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ValidationError:
    """A problem with one field of one CSV row."""

    row: int
    field: str
    message: str

    def __str__(self) -> str:
        return f"Row {self.row}: {self.field} - {self.message}"


@dataclass(frozen=True)
class ProductFields:
    """Validated attributes of a base product row."""

    name: str
    price: Decimal
    description: str = ''
    stock: Decimal = Decimal('0')
    weight: Optional[Decimal] = None
    is_digital: bool = False
    status: str = 'active'
    has_notes: bool = False
    image_url: Optional[str] = None


@dataclass(frozen=True)
class VariantOption:
    tier: int
    name: str
    value: str


@dataclass(frozen=True)
class VariantRow:
    """One variant of a product, built from a single CSV row."""

    row: int
    options: Tuple[VariantOption, ...]
    price_override: Optional[Decimal] = None
    stock_override: Optional[Decimal] = None
    weight_override: Optional[Decimal] = None
    sku_override: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @property
    def option_name(self) -> str:
        return self.options[0].name if self.options else ''

    @property
    def option_value(self) -> str:
        return self.options[0].value if self.options else ''

    @property
    def option_values(self) -> Tuple[str, ...]:
        return tuple(option.value for option in self.options)

    @property
    def label(self) -> str:
        return ' / '.join(f"{option.name}: {option.value}" for option in self.options)


@dataclass(frozen=True)
class ProductGroup:
    """A base product together with its variant rows."""

    product_name: str
    key: str
    base_row: int
    fields: ProductFields
    variant_rows: Tuple[VariantRow, ...] = ()

    @property
    def has_variants(self) -> bool:
        return len(self.variant_rows) > 0


@dataclass(frozen=True)
class ParseResult:
    products: List[ProductGroup]
    errors: List[ValidationError]
    total_rows: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class Progress:
    """Snapshot emitted after each product group is attempted."""

    current: int
    total: int
    current_product: str
    status: str


@dataclass(frozen=True)
class CreatedProduct:
    product_name: str
    product_id: str
    variant_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FailedProduct:
    product_name: str
    error: str
    # Set when the base product exists remotely but its variants did not finish
    product_id: Optional[str] = None


@dataclass(frozen=True)
class BulkResult:
    """Outcome of one creation run, one entry per product group."""

    successes: List[CreatedProduct] = field(default_factory=list)
    errors: List[FailedProduct] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.errors)
