#!/usr/bin/env python3
"""Seed sample coffee products for local development."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from beanmart import create_app
from beanmart.extensions import db
from beanmart.models.product import Product
from beanmart.models.variant import ProductVariant
from beanmart.models.image import VariantImage

app = create_app()

SAMPLE_PRODUCTS = [
    {
        "slug": "ethiopia-yirgacheffe",
        "name": "Ethiopia Yirgacheffe",
        "short_description": "Floral, bergamot, lemon zest",
        "variants": [("YIRG-250", 14.50, 250), ("YIRG-1000", 48.00, 1000)],
    },
    {
        "slug": "colombia-huila",
        "name": "Colombia Huila",
        "short_description": "Red apple, caramel, cocoa",
        "variants": [("HUIL-250", 12.00, 250), ("HUIL-1000", 40.00, 1000)],
    },
    {
        "slug": "sumatra-mandheling",
        "name": "Sumatra Mandheling",
        "short_description": "Earthy, cedar, dark chocolate",
        "variants": [("MAND-250", 13.00, 250), ("MAND-1000", 44.00, 1000)],
    },
    {
        "slug": "house-espresso-blend",
        "name": "House Espresso Blend",
        "short_description": "Hazelnut, molasses, long finish",
        "variants": [("ESPR-250", 11.50, 250), ("ESPR-1000", 38.00, 1000)],
    },
]

# Placeholder cover images; real images go through the upload endpoints
COLORS = ["6f4e37", "a0522d", "3b2f2f", "c08552"]


def seed():
    with app.app_context():
        if Product.query.first():
            print("Products already exist, skipping seed.")
            return

        for i, item in enumerate(SAMPLE_PRODUCTS):
            product = Product(
                slug=item["slug"],
                name=item["name"],
                short_description=item["short_description"],
                currency="USD",
            )
            db.session.add(product)
            db.session.flush()

            color = COLORS[i % len(COLORS)]
            for sku, price, grams in item["variants"]:
                variant = ProductVariant(
                    product_id=product.id,
                    sku=sku,
                    price=price,
                    stock=25,
                    weight_gram=grams,
                )
                db.session.add(variant)
                db.session.flush()
                db.session.add(
                    VariantImage(
                        variant_id=variant.id,
                        url=f"https://placehold.co/700x700/{color}/fff?text={sku}",
                        position=1,
                    )
                )

            print(f"  Created {item['slug']}: {item['name']}")

        db.session.commit()
        print(f"\nSeeded {len(SAMPLE_PRODUCTS)} products.")


if __name__ == "__main__":
    seed()
