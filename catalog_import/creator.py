"""
Creation Orchestrator Module
Creates parsed product groups in the remote store, one group at a time.
"""

import threading
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from loguru import logger

from .models import (
    BulkResult, CreatedProduct, FailedProduct, ProductGroup, Progress, VariantRow,
)


UNKNOWN_ERROR = 'Unknown error occurred'
CANCELLED_ERROR = 'Import cancelled before this product was created'


class ProductStore(Protocol):
    """Remote store the creator writes to."""

    def create_product(self, fields: Dict[str, Any], owner_id: str) -> str:
        ...

    def create_variant_options(self, product_id: str, options: List[Dict[str, Any]]) -> None:
        ...

    def create_variant(self, product_id: str, fields: Dict[str, Any]) -> str:
        ...


class VariantCreationError(Exception):
    """A variant step failed after its base product had already been created."""

    def __init__(self, product_id: str, message: str):
        super().__init__(message)
        self.product_id = product_id


def _number(value: Optional[Decimal]) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def generate_variant_sku(product_id: str, option_values: Sequence[str]) -> str:
    """
    Build a default SKU: the last 8 characters of the product id followed by
    the first 3 characters of each option value, upper-cased and joined by '-'.
    """
    parts = [str(product_id)[-8:].upper()]
    parts.extend(value[:3].upper() for value in option_values if value)
    return '-'.join(parts)


def _error_message(error: Exception) -> str:
    message = str(error).strip()
    return message or UNKNOWN_ERROR


class BulkProductCreator:
    """
    Drive creation of product groups against a ProductStore.

    Groups are processed strictly in order with one call in flight at a time.
    A failing group is recorded and the run moves on to the next one.

    For a group with variants the option rows are written first, then one
    variant per row. If either step fails after the base product was
    created, the remaining variant steps of that group are skipped. Nothing
    is rolled back and the group is reported as failed with the orphaned
    product id.
    """

    def __init__(self, store: ProductStore, throttle_seconds: float = 0.0):
        """
        Initialize creator.

        Args:
            store: Remote store implementing the ProductStore methods
            throttle_seconds: Pause between groups to spread load on the store
        """
        self.store = store
        self.throttle_seconds = throttle_seconds

    def create_products(
        self,
        groups: Sequence[ProductGroup],
        owner_id: str,
        on_progress: Optional[Callable[[Progress], None]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> BulkResult:
        """
        Create every group and collect the outcome of each.

        Args:
            groups: Parsed product groups, created in this order
            owner_id: Id of the seller the products belong to
            on_progress: Called after every group attempt, before the next group
            cancel_event: When set, remaining groups are not attempted

        Returns:
            BulkResult with one entry per group
        """
        successes: List[CreatedProduct] = []
        errors: List[FailedProduct] = []
        cancelled = False
        total = len(groups)

        logger.info(f"Creating {total} products for owner {owner_id}")

        for index, group in enumerate(groups):
            if index > 0 and self.throttle_seconds > 0:
                self._pause(cancel_event)

            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                remaining = groups[index:]
                logger.warning(f"Import cancelled, skipping {len(remaining)} remaining products")
                errors.extend(FailedProduct(g.product_name, CANCELLED_ERROR) for g in remaining)
                break

            outcome = self._create_group(group, owner_id)
            if isinstance(outcome, CreatedProduct):
                successes.append(outcome)
                status = 'created'
            else:
                errors.append(outcome)
                status = 'failed'

            if on_progress is not None:
                on_progress(Progress(
                    current=index + 1,
                    total=total,
                    current_product=group.product_name,
                    status=status,
                ))

        result = BulkResult(successes=successes, errors=errors, cancelled=cancelled)
        self._log_summary(result)
        return result

    def _pause(self, cancel_event: Optional[threading.Event]) -> None:
        # Waiting on the event lets a cancel request end the pause early
        if cancel_event is not None:
            cancel_event.wait(self.throttle_seconds)
        else:
            time.sleep(self.throttle_seconds)

    def _create_group(self, group: ProductGroup, owner_id: str):
        try:
            product_id = self.store.create_product(self.build_product_payload(group), owner_id)
        except Exception as e:
            message = _error_message(e)
            logger.error(f"Failed to create product '{group.product_name}': {message}")
            return FailedProduct(group.product_name, message)

        logger.debug(f"Created product '{group.product_name}' ({product_id})")

        try:
            variant_ids = self._create_variants(group, product_id)
        except VariantCreationError as e:
            logger.error(f"Product '{group.product_name}' ({product_id}) left incomplete: {e}")
            return FailedProduct(group.product_name, str(e), product_id=e.product_id)

        return CreatedProduct(group.product_name, product_id, tuple(variant_ids))

    def _create_variants(self, group: ProductGroup, product_id: str) -> List[str]:
        variant_ids = []
        if not group.has_variants:
            return variant_ids

        try:
            self.store.create_variant_options(product_id, self.build_variant_options(group))
        except Exception as e:
            raise VariantCreationError(
                product_id,
                f"Variant options failed: {_error_message(e)}. "
                f"Product {product_id} was created without its variants"
            ) from e

        count = len(group.variant_rows)
        for position, variant in enumerate(group.variant_rows, start=1):
            try:
                variant_id = self.store.create_variant(
                    product_id, self.build_variant_payload(group, variant, product_id)
                )
            except Exception as e:
                raise VariantCreationError(
                    product_id,
                    f"Variant {position} of {count} ({variant.label}) failed: {_error_message(e)}. "
                    f"Product {product_id} was created without its remaining variants"
                ) from e
            variant_ids.append(variant_id)
        return variant_ids

    @staticmethod
    def build_product_payload(group: ProductGroup) -> Dict[str, Any]:
        """
        Build the create-product fields for a group.

        Products with variants carry zero stock of their own; stock lives on
        the variants.
        """
        fields = group.fields
        return {
            'name': group.product_name,
            'description': fields.description,
            'price': _number(fields.price),
            'stock': 0 if group.has_variants else _number(fields.stock),
            'weight': _number(fields.weight),
            'is_digital': fields.is_digital,
            'status': fields.status,
            'has_notes': fields.has_notes,
            'has_variants': group.has_variants,
            'image': fields.image_url,
        }

    @staticmethod
    def build_variant_options(group: ProductGroup) -> List[Dict[str, Any]]:
        """
        Build one option row per distinct (tier, value) of a group.

        Tiers are ordered by level. Values keep the order they first appear in
        the file and sort_order counts from 0 within each tier.
        """
        tiers: Dict[int, Dict[str, Any]] = {}
        for variant in group.variant_rows:
            for option in variant.options:
                tier = tiers.setdefault(option.tier, {'name': option.name, 'values': []})
                if option.value not in tier['values']:
                    tier['values'].append(option.value)

        options = []
        for level in sorted(tiers):
            for sort_order, value in enumerate(tiers[level]['values']):
                options.append({
                    'tier_level': level,
                    'tier_name': tiers[level]['name'],
                    'option_value': value,
                    'option_display_name': value,
                    'sort_order': sort_order,
                })
        return options

    @staticmethod
    def build_variant_payload(group: ProductGroup, variant: VariantRow, product_id: str) -> Dict[str, Any]:
        """
        Build the create-variant fields, falling back to the base product values.

        Variants are active unless the row says otherwise, and get a generated
        SKU when the row does not give one.
        """
        fields = group.fields
        payload: Dict[str, Any] = {}
        for option in variant.options:
            payload[f'variant_tier_{option.tier}_value'] = option.value

        payload['full_product_name'] = ' '.join([group.product_name] + list(variant.option_values))
        payload['price'] = _number(variant.price_override if variant.price_override is not None else fields.price)
        payload['stock'] = _number(variant.stock_override if variant.stock_override is not None else fields.stock)
        payload['sku'] = variant.sku_override or generate_variant_sku(product_id, variant.option_values)
        payload['is_active'] = variant.is_active if variant.is_active is not None else True

        weight = variant.weight_override if variant.weight_override is not None else fields.weight
        if weight is not None:
            payload['weight'] = _number(weight)
        if variant.image_url:
            payload['image_url'] = variant.image_url
        if variant.description:
            payload['description'] = variant.description
        return payload

    def _log_summary(self, result: BulkResult) -> None:
        logger.info("=" * 60)
        logger.info("BULK CREATE SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Products attempted: {result.total}")
        logger.info(f"Created: {len(result.successes)}")
        logger.info(f"Failed: {len(result.errors)}")
        if result.cancelled:
            logger.info("Run was cancelled before all products were attempted")
        logger.info("=" * 60)
