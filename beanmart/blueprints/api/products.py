"""Combined product routes: a product, its variants and their images at once."""
from flask import jsonify

from beanmart.auth import admin_required
from beanmart.blueprints.api import api_bp
from beanmart.blueprints.api.payload import parse_uuid, request_payload
from beanmart.errors import NotFound
from beanmart.services import product_service
from beanmart.services.ingestion_service import get_ingestor


@api_bp.route("/products/combined", methods=["POST"])
@admin_required
def create_product_with_variants():
    product, variants = product_service.create_product_with_variants(
        request_payload(), get_ingestor()
    )
    return (
        jsonify(
            {
                "success": True,
                "data": {"product": product.to_dict(), "variants": variants},
                "message": "Product with variants and images created successfully",
            }
        ),
        201,
    )


@api_bp.route("/products/<product_id>/combined")
def get_product_with_variants(product_id):
    data = product_service.get_product_with_variants(parse_uuid(product_id, "product ID"))
    if data is None:
        raise NotFound("Product not found")
    return jsonify({"success": True, "data": data})


@api_bp.route("/products/<product_id>/variants/combined", methods=["POST"])
@admin_required
def add_variants_with_images(product_id):
    product_id = parse_uuid(product_id, "product ID")
    variants = product_service.add_variants_with_images(
        product_id, request_payload(), get_ingestor()
    )
    return (
        jsonify(
            {
                "success": True,
                "data": {"productId": str(product_id), "variants": variants},
                "message": "Variants with images added successfully",
            }
        ),
        201,
    )


@api_bp.route("/products/<product_id>/combined", methods=["PUT"])
@admin_required
def update_product_with_variants(product_id):
    data = product_service.update_product_with_variants(
        parse_uuid(product_id, "product ID"), request_payload(), get_ingestor()
    )
    return jsonify(
        {
            "success": True,
            "data": data,
            "message": "Product with variants and images updated successfully",
        }
    )
