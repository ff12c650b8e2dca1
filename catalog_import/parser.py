"""
CSV Parser Module
Reads bulk upload CSV content, validates every row and groups the valid rows
into products with their variants.
"""

import io
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd
from loguru import logger

from .exceptions import CSVParseError
from .models import ParseResult, ProductFields, ProductGroup, ValidationError, VariantRow
from .schema import COLUMNS_BY_NAME, required_columns
from .validator import RowValidator, ValidatedRow


@dataclass
class _PendingGroup:
    """Mutable group state, only alive while a file is being grouped."""

    product_name: str
    key: str
    base_row: int
    fields: ProductFields
    variants: List[VariantRow] = field(default_factory=list)
    combinations: Dict[Tuple, int] = field(default_factory=dict)
    # tier -> (option name, row it was first used on)
    tier_names: Dict[int, Tuple[str, int]] = field(default_factory=dict)

    def freeze(self) -> ProductGroup:
        return ProductGroup(
            product_name=self.product_name,
            key=self.key,
            base_row=self.base_row,
            fields=self.fields,
            variant_rows=tuple(self.variants),
        )


class CatalogCSVParser:
    """Parse upload files into product groups and validation errors."""

    def __init__(self, validator: Optional[RowValidator] = None):
        """
        Initialize parser.

        Args:
            validator: Row validator to use. A default one is created if None.
        """
        self.validator = validator or RowValidator()

    def parse(self, content: str) -> ParseResult:
        """
        Parse the text of an uploaded CSV file.

        Args:
            content: Full file content

        Returns:
            ParseResult with product groups in first-seen order and
            validation errors in row order

        Raises:
            CSVParseError: If the file is empty, the header does not match the
                upload schema, or the CSV itself cannot be tokenized
        """
        if content is None or not content.strip():
            raise CSVParseError("The file is empty")

        content = content.lstrip('\ufeff')

        try:
            # header=None keeps duplicate header names intact. Frame index i is
            # CSV record i + 1 with the header as record 1; a quoted cell that
            # spans lines still counts as one record
            df = pd.read_csv(
                io.StringIO(content),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            )
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Could not tokenize CSV content: {e}")
            raise CSVParseError(f"Could not read CSV file: {e}") from e

        df = df.fillna('')
        columns = [str(name).strip().lower() for name in df.iloc[0].tolist()]
        self._check_header(columns)

        rows = []
        for index, values in enumerate(df.iloc[1:].itertuples(index=False, name=None), start=2):
            rows.append((index, dict(zip(columns, values))))

        return self._parse_numbered_rows(rows)

    def parse_rows(self, rows: Iterable[Dict[str, str]], first_row_number: int = 2) -> ParseResult:
        """
        Validate and group rows that were already split into cells.

        Args:
            rows: Raw rows keyed by column name
            first_row_number: Record number of the first row

        Returns:
            ParseResult
        """
        numbered = [(first_row_number + offset, row) for offset, row in enumerate(rows)]
        return self._parse_numbered_rows(numbered)

    def _check_header(self, columns: List[str]) -> None:
        problems = []

        duplicates = sorted({name for name in columns if columns.count(name) > 1})
        if duplicates:
            problems.append(f"duplicate columns: {', '.join(duplicates)}")

        missing = [name for name in required_columns() if name not in columns]
        if missing:
            problems.append(f"missing required columns: {', '.join(missing)}")

        unknown = [name or '<blank>' for name in columns if name not in COLUMNS_BY_NAME]
        if unknown:
            problems.append(f"unknown columns: {', '.join(unknown)}")

        if problems:
            message = "CSV header does not match the upload template (" + '; '.join(problems) + ")"
            logger.error(message)
            raise CSVParseError(message)

    def _parse_numbered_rows(self, rows: List[Tuple[int, Dict[str, str]]]) -> ParseResult:
        groups: Dict[str, _PendingGroup] = {}
        errors: List[ValidationError] = []
        total_rows = 0

        for row_number, raw_row in rows:
            if not any(str(value).strip() for value in raw_row.values() if value is not None):
                continue
            total_rows += 1

            validated, row_errors = self.validator.validate_row(raw_row, row_number)
            if row_errors:
                errors.extend(row_errors)
                continue

            grouping_error = self._fold_row(groups, validated)
            if grouping_error is not None:
                errors.append(grouping_error)

        products = [group.freeze() for group in groups.values()]
        logger.info(
            f"Parsed {total_rows} rows into {len(products)} products "
            f"({len(errors)} validation errors)"
        )
        return ParseResult(products=products, errors=errors, total_rows=total_rows)

    def _fold_row(self, groups: Dict[str, _PendingGroup], row: ValidatedRow) -> Optional[ValidationError]:
        """
        Add one validated row to the groups built so far.

        Returns:
            A ValidationError if the row conflicts with an existing group, else None
        """
        group = groups.get(row.key)

        if group is None:
            if row.base_fields is None:
                return ValidationError(
                    row=row.row,
                    field='price',
                    message='is required on the first row of a product',
                )
            group = _PendingGroup(
                product_name=row.product_name,
                key=row.key,
                base_row=row.row,
                fields=row.base_fields,
            )
            groups[row.key] = group
            logger.debug(f"Row {row.row}: new product '{row.product_name}'")
            if row.variant is not None:
                return self._add_variant(group, row.variant)
            return None

        if row.variant is None:
            return ValidationError(
                row=row.row,
                field='product_name',
                message=(
                    f"duplicate base row for product '{group.product_name}' "
                    f"(first defined on row {group.base_row})"
                ),
            )

        return self._add_variant(group, row.variant)

    @staticmethod
    def _add_variant(group: _PendingGroup, variant: VariantRow) -> Optional[ValidationError]:
        for option in variant.options:
            known = group.tier_names.get(option.tier)
            if known is not None and known[0].casefold() != option.name.casefold():
                return ValidationError(
                    row=variant.row,
                    field=f'variant_tier_{option.tier}_name',
                    message=f"must match '{known[0]}' used on row {known[1]}",
                )

        combination = tuple(
            (option.tier, option.name.casefold(), option.value.casefold()) for option in variant.options
        )
        first_row = group.combinations.get(combination)
        if first_row is not None:
            return ValidationError(
                row=variant.row,
                field='variant_tier_1_value',
                message=(
                    f"duplicate variant '{variant.label}' for product '{group.product_name}' "
                    f"(first defined on row {first_row})"
                ),
            )

        group.combinations[combination] = variant.row
        for option in variant.options:
            group.tier_names.setdefault(option.tier, (option.name, variant.row))
        group.variants.append(variant)
        return None
