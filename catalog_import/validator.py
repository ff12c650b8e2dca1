"""
Row Validator Module
Validates raw upload rows field by field and turns them into typed rows.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

from loguru import logger

from .models import ProductFields, ValidationError, VariantOption, VariantRow
from .schema import (
    BOOLEAN, DEFAULT_STATUS, NUMBER, TEXT, OPTION_NAME, OPTION_VALUE, PRODUCT_CSV_SCHEMA,
    STATUS, STATUS_TOKENS, VARIANT_TIERS, parse_boolean_token, tier_column_names,
)


def normalize_product_key(product_name: str) -> str:
    """
    Build the key used to decide whether two rows name the same product.
    Surrounding and repeated inner whitespace is ignored, comparison is caseless.
    """
    return ' '.join(str(product_name).split()).casefold()


@dataclass(frozen=True)
class ValidatedRow:
    """A row that passed validation, ready to be grouped."""

    row: int
    product_name: str
    key: str
    # None when the row carries no price and so cannot open a product
    base_fields: Optional[ProductFields]
    variant: Optional[VariantRow]


class RowValidator:
    """Validate upload rows against the shared column schema."""

    def validate_row(
        self,
        row: Dict[str, str],
        row_number: int
    ) -> Tuple[Optional[ValidatedRow], List[ValidationError]]:
        """
        Validate a single raw row.

        Args:
            row: Mapping of column name to cell text
            row_number: 1-based CSV record number (the header is record 1)

        Returns:
            Tuple of (validated_row, list_of_errors). Exactly one side is populated.
        """
        errors = []
        has_options = self._has_variant_options(row)

        for column in PRODUCT_CSV_SCHEMA:
            value = self._cell(row, column.name)
            message = None

            if column.required and column.kind == TEXT and not value:
                message = 'is required'
            elif column.kind == NUMBER and value and self._parse_number(value) is None:
                message = f"must be a valid non-negative number, got '{value}'"
            elif column.kind == BOOLEAN and value and not self._is_boolean_token(value):
                message = f"must be true/false, yes/no or 1/0, got '{value}'"
            elif column.kind == STATUS and value and value.lower() not in STATUS_TOKENS:
                message = f"must be one of: {', '.join(STATUS_TOKENS)}, got '{value}'"
            elif column.kind in (OPTION_NAME, OPTION_VALUE):
                message = self._check_tier_pair(row, column.name)

            if message is None and column.variant_only and value and not has_options:
                message = 'requires a variant option (variant_tier_1_name and variant_tier_1_value)'

            if message is not None:
                errors.append(ValidationError(row=row_number, field=column.name, message=message))

        if errors:
            logger.debug(f"Row {row_number}: {len(errors)} validation error(s)")
            return None, errors

        return self._build_row(row, row_number, has_options), []

    def _build_row(self, row: Dict[str, str], row_number: int, has_options: bool) -> ValidatedRow:
        product_name = ' '.join(self._cell(row, 'product_name').split())

        base_fields = None
        price = self._parse_number(self._cell(row, 'price'))
        if price is not None:
            base_fields = ProductFields(
                name=product_name,
                price=price,
                description=self._cell(row, 'description'),
                stock=self._parse_number(self._cell(row, 'stock')) or Decimal('0'),
                weight=self._parse_number(self._cell(row, 'weight')),
                is_digital=self._parse_bool(self._cell(row, 'is_digital')) or False,
                status=self._cell(row, 'status').lower() or DEFAULT_STATUS,
                has_notes=self._parse_bool(self._cell(row, 'has_notes')) or False,
                image_url=self._cell(row, 'image_url') or None,
            )

        variant = None
        if has_options:
            variant = VariantRow(
                row=row_number,
                options=self._collect_options(row),
                price_override=self._parse_number(self._cell(row, 'variant_price')),
                stock_override=self._parse_number(self._cell(row, 'variant_stock')),
                weight_override=self._parse_number(self._cell(row, 'variant_weight')),
                sku_override=self._cell(row, 'variant_sku') or None,
                image_url=self._cell(row, 'variant_image_url') or None,
                description=self._cell(row, 'variant_description') or None,
                is_active=self._parse_bool(self._cell(row, 'variant_is_active')),
            )

        return ValidatedRow(
            row=row_number,
            product_name=product_name,
            key=normalize_product_key(product_name),
            base_fields=base_fields,
            variant=variant,
        )

    def _collect_options(self, row: Dict[str, str]) -> Tuple[VariantOption, ...]:
        options = []
        for tier in range(1, VARIANT_TIERS + 1):
            name_column, value_column = tier_column_names(tier)
            name = self._cell(row, name_column)
            value = self._cell(row, value_column)
            if name and value:
                options.append(VariantOption(tier=tier, name=name, value=value))
        return tuple(options)

    def _check_tier_pair(self, row: Dict[str, str], column_name: str) -> Optional[str]:
        """Both-or-neither check for a variant tier, reported on the missing column."""
        tier = int(column_name.split('_')[2])
        name_column, value_column = tier_column_names(tier)
        name = self._cell(row, name_column)
        value = self._cell(row, value_column)

        if column_name == name_column and value and not name:
            return f"is required when {value_column} is provided"
        if column_name == value_column and name and not value:
            return f"is required when {name_column} is provided"
        return None

    def _has_variant_options(self, row: Dict[str, str]) -> bool:
        for tier in range(1, VARIANT_TIERS + 1):
            if any(self._cell(row, column) for column in tier_column_names(tier)):
                return True
        return False

    @staticmethod
    def _cell(row: Dict[str, str], column_name: str) -> str:
        value = row.get(column_name)
        if value is None:
            return ''
        return str(value).strip()

    @staticmethod
    def _parse_number(value: str) -> Optional[Decimal]:
        """
        Parse a non-negative number, allowing thousands separators.

        Args:
            value: Cell text

        Returns:
            Decimal value, or None if blank or invalid
        """
        cleaned = value.replace(',', '').strip()
        if not cleaned:
            return None
        try:
            number = Decimal(cleaned)
        except InvalidOperation:
            return None
        if not number.is_finite() or number < 0:
            return None
        return number

    @staticmethod
    def _is_boolean_token(value: str) -> bool:
        try:
            parse_boolean_token(value)
        except ValueError:
            return False
        return True

    @staticmethod
    def _parse_bool(value: str) -> Optional[bool]:
        if not value:
            return None
        return parse_boolean_token(value)
