"""
Template Generator Module
Builds the downloadable example CSV for bulk uploads.
"""

from typing import Dict, List

import pandas as pd

from .schema import header


TEMPLATE_FILENAME = 'product_bulk_upload_template.csv'

_EXAMPLE_ROWS: List[Dict[str, str]] = [
    {
        'product_name': 'Simple Product',
        'description': 'This is a simple product without variants',
        'price': '50000',
        'stock': '100',
        'is_digital': 'false',
        'weight': '500',
        'status': 'active',
        'has_notes': 'false',
        'image_url': 'https://example.com/image1.jpg',
    },
    {
        'product_name': 'T-Shirt',
        'description': 'Comfortable cotton t-shirt',
        'price': '150000',
        'stock': '0',
        'is_digital': 'false',
        'weight': '200',
        'status': 'active',
        'has_notes': 'false',
        'image_url': 'https://example.com/tshirt.jpg',
        'variant_tier_1_name': 'Color',
        'variant_tier_1_value': 'Red',
        'variant_tier_2_name': 'Size',
        'variant_tier_2_value': 'Large',
        'variant_price': '150000',
        'variant_stock': '10',
        'variant_weight': '250',
        'variant_sku': 'TSHIRT-RED-LG',
        'variant_image_url': 'https://example.com/tshirt-red-lg.jpg',
        'variant_is_active': 'true',
        'variant_description': 'Red large size variant',
    },
    {
        'product_name': 'T-Shirt',
        'variant_tier_1_name': 'Color',
        'variant_tier_1_value': 'Blue',
        'variant_tier_2_name': 'Size',
        'variant_tier_2_value': 'Large',
        'variant_price': '155000',
        'variant_stock': '15',
        'variant_weight': '250',
        'variant_sku': 'TSHIRT-BLUE-LG',
        'variant_image_url': 'https://example.com/tshirt-blue-lg.jpg',
        'variant_is_active': 'true',
        'variant_description': 'Blue large size variant',
    },
]


def generate_csv_template() -> str:
    """
    Render the upload template: the schema header plus example rows for a
    simple product and a product with two variants.

    Returns:
        CSV text with Unix line endings
    """
    columns = header()
    df = pd.DataFrame(_EXAMPLE_ROWS, columns=columns).fillna('')
    return df.to_csv(index=False, lineterminator='\n')
