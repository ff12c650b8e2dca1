"""
Tests for Row Validator Module
"""

from decimal import Decimal

from catalog_import.validator import RowValidator, normalize_product_key


class TestRowValidator:
    """Test cases for RowValidator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.validator = RowValidator()

    def test_valid_simple_row(self):
        """Test a base row without variant columns."""
        row = {
            "product_name": "  Coffee Beans ",
            "price": "50,000",
            "stock": "12",
            "is_digital": "no",
            "weight": "250.5",
        }
        validated, errors = self.validator.validate_row(row, 2)

        assert errors == []
        assert validated.product_name == "Coffee Beans"
        assert validated.key == "coffee beans"
        assert validated.base_fields.price == Decimal("50000")
        assert validated.base_fields.stock == Decimal("12")
        assert validated.base_fields.weight == Decimal("250.5")
        assert validated.base_fields.is_digital is False
        assert validated.base_fields.status == "active"
        assert validated.variant is None

    def test_product_name_required(self):
        """Test that a blank product name is rejected."""
        validated, errors = self.validator.validate_row({"product_name": "   ", "price": "10"}, 3)

        assert validated is None
        assert len(errors) == 1
        assert errors[0].row == 3
        assert errors[0].field == "product_name"

    def test_numeric_fields(self):
        """Test price, stock and weight validation."""
        row = {"product_name": "Lamp", "price": "abc", "stock": "-1", "weight": "1e3"}
        validated, errors = self.validator.validate_row(row, 4)

        assert validated is None
        assert [e.field for e in errors] == ["price", "stock"]
        assert "'abc'" in errors[0].message
        assert "'-1'" in errors[1].message

    def test_zero_price_is_allowed(self):
        """Test that zero is a valid non-negative number."""
        validated, errors = self.validator.validate_row({"product_name": "Freebie", "price": "0"}, 2)

        assert errors == []
        assert validated.base_fields.price == Decimal("0")

    def test_non_finite_number_rejected(self):
        """Test that NaN and infinity are rejected."""
        _, errors = self.validator.validate_row({"product_name": "X", "price": "NaN", "weight": "Infinity"}, 2)

        assert [e.field for e in errors] == ["price", "weight"]

    def test_boolean_tokens(self):
        """Test boolean token handling."""
        for token, expected in [("yes", True), ("TRUE", True), ("1", True), ("no", False), ("False", False), ("0", False)]:
            validated, errors = self.validator.validate_row({"product_name": "E-book", "price": "5", "is_digital": token}, 2)
            assert errors == []
            assert validated.base_fields.is_digital is expected

        _, errors = self.validator.validate_row({"product_name": "E-book", "price": "5", "is_digital": "maybe"}, 2)
        assert len(errors) == 1
        assert errors[0].field == "is_digital"

    def test_status_validation(self):
        """Test status values."""
        validated, errors = self.validator.validate_row({"product_name": "A", "price": "1", "status": "Draft"}, 2)
        assert errors == []
        assert validated.base_fields.status == "draft"

        _, errors = self.validator.validate_row({"product_name": "A", "price": "1", "status": "archived"}, 2)
        assert errors[0].field == "status"

    def test_variant_option_both_or_neither(self):
        """Test that option name and value must be given together."""
        _, errors = self.validator.validate_row(
            {"product_name": "Shirt", "variant_tier_1_name": "Size"}, 5
        )
        assert len(errors) == 1
        assert errors[0].field == "variant_tier_1_value"

        _, errors = self.validator.validate_row(
            {"product_name": "Shirt", "variant_tier_2_value": "Red"}, 6
        )
        assert len(errors) == 1
        assert errors[0].field == "variant_tier_2_name"

    def test_variant_row(self):
        """Test a row carrying variant options and overrides."""
        row = {
            "product_name": "Shirt",
            "variant_tier_1_name": "Color",
            "variant_tier_1_value": "Red",
            "variant_tier_2_name": "Size",
            "variant_tier_2_value": "M",
            "variant_price": "55000",
            "variant_sku": "SHIRT-RED-M",
            "variant_is_active": "false",
        }
        validated, errors = self.validator.validate_row(row, 7)

        assert errors == []
        assert validated.base_fields is None
        variant = validated.variant
        assert variant.row == 7
        assert variant.option_name == "Color"
        assert variant.option_value == "Red"
        assert variant.option_values == ("Red", "M")
        assert variant.label == "Color: Red / Size: M"
        assert variant.price_override == Decimal("55000")
        assert variant.stock_override is None
        assert variant.sku_override == "SHIRT-RED-M"
        assert variant.is_active is False

    def test_variant_columns_need_an_option(self):
        """Test variant-only columns on a row without options."""
        _, errors = self.validator.validate_row(
            {"product_name": "Mug", "price": "10", "variant_sku": "MUG-1"}, 2
        )

        assert len(errors) == 1
        assert errors[0].field == "variant_sku"

    def test_errors_follow_column_order(self):
        """Test that every failing field is reported in column order."""
        row = {
            "product_name": "",
            "price": "x",
            "is_digital": "maybe",
            "weight": "-5",
            "variant_stock": "lots",
            "variant_tier_1_name": "Size",
            "variant_tier_1_value": "S",
        }
        _, errors = self.validator.validate_row(row, 9)

        assert [e.field for e in errors] == ["product_name", "price", "is_digital", "weight", "variant_stock"]
        assert all(e.row == 9 for e in errors)

    def test_validation_is_repeatable(self):
        """Test that validating the same row twice gives the same result."""
        good = {"product_name": "Tea", "price": "3"}
        bad = {"product_name": "Tea", "price": "three"}

        assert self.validator.validate_row(good, 2) == self.validator.validate_row(good, 2)
        assert self.validator.validate_row(bad, 2) == self.validator.validate_row(bad, 2)

    def test_normalize_product_key(self):
        """Test product name normalization."""
        assert normalize_product_key("  Blue   Shirt ") == "blue shirt"
        assert normalize_product_key("BLUE SHIRT") == normalize_product_key("blue shirt")
