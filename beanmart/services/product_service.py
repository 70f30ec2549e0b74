"""Product + variant + image creation in one request."""
import logging

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from beanmart.errors import BeanmartError, InvalidInput, NotFound
from beanmart.extensions import db
from beanmart.models.product import Product
from beanmart.models.variant import ProductVariant
from beanmart.schemas import CombinedProductCreate, CombinedProductUpdate, VariantIn
from beanmart.services import variant_image_service
from beanmart.services.source_resolver import Base64Source

logger = logging.getLogger(__name__)


def get_product(product_id):
    return db.session.get(Product, product_id)


def get_product_with_variants(product_id):
    """Product dict with its variants and their images, or None."""
    product = get_product(product_id)
    if product is None:
        return None
    data = product.to_dict()
    data["variants"] = [v.to_dict(with_images=True) for v in product.variants]
    return data


def create_product(product_in):
    product = Product(**product_in.model_dump())
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidInput(f"Product slug '{product_in.slug}' already exists")
    logger.info("Created product %s (%s)", product.slug, product.id)
    return product


def create_variant(product_id, variant_in):
    variant = ProductVariant(
        product_id=product_id,
        **variant_in.model_dump(exclude={"images"}),
    )
    db.session.add(variant)
    db.session.commit()
    return variant


def create_product_with_variants(payload, ingestor):
    """Create a product, its variants and their images.

    Product and variant failures abort the request. Image failures are
    logged and skipped, so a variant may end up with fewer images than sent.

    Returns:
        (product, [variant dicts with their created images])
    """
    data = CombinedProductCreate.model_validate(payload)
    product = create_product(data.product)
    variants = [_create_variant_with_images(product.id, v, ingestor) for v in data.variants]
    return product, variants


def add_variants_with_images(product_id, payload, ingestor):
    if get_product(product_id) is None:
        raise NotFound("Product not found")
    if not isinstance(payload, list):
        raise InvalidInput("Expected a list of variants")
    variants_in = [VariantIn.model_validate(item) for item in payload]
    return [_create_variant_with_images(product_id, v, ingestor) for v in variants_in]


def update_product_with_variants(product_id, payload, ingestor):
    """Patch a product and its existing variants.

    Images with an ``id`` are updated in place, images with a ``url`` are
    recorded directly and images with ``imageData`` are ingested.
    """
    data = CombinedProductUpdate.model_validate(payload)
    product = get_product(product_id)
    if product is None:
        raise NotFound("Product not found")

    if data.product is not None:
        for field, value in data.product.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(product, field, value)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise InvalidInput(f"Product slug '{data.product.slug}' already exists")

    for patch in data.variants:
        variant = db.session.get(ProductVariant, patch.id)
        if variant is None or variant.product_id != product.id:
            raise NotFound(f"Variant with ID {patch.id} not found")
        changes = patch.model_dump(exclude_unset=True, exclude={"id", "images"})
        for field, value in changes.items():
            if value is not None:
                setattr(variant, field, value)
        db.session.commit()

        for image_in in patch.images:
            if image_in.id is not None:
                fields = {"position": image_in.position}
                if image_in.url:
                    fields["url"] = image_in.url
                if variant_image_service.update(image_in.id, fields) is None:
                    logger.warning("Variant image %s not found, skipped", image_in.id)
            else:
                _attach_image(variant.id, image_in, ingestor)

    db.session.refresh(product)
    return get_product_with_variants(product.id)


def _create_variant_with_images(product_id, variant_in, ingestor):
    variant = create_variant(product_id, variant_in)
    images = []
    for image_in in variant_in.images:
        image = _attach_image(variant.id, image_in, ingestor)
        if image is not None:
            images.append(image.to_dict())
    data = variant.to_dict()
    data["images"] = images
    return data


def _attach_image(variant_id, image_in, ingestor):
    """Record one image for a variant. Returns the VariantImage, or None on failure."""
    try:
        if image_in.url:
            return variant_image_service.create(
                {"variantId": variant_id, "url": image_in.url, "position": image_in.position}
            )
        if image_in.image_data:
            return ingestor.ingest_one(
                variant_id,
                Base64Source(data_uri=image_in.image_data),
                position=image_in.position,
            ).image
    except (BeanmartError, ValidationError):
        logger.exception("Error uploading image for variant %s", variant_id)
    return None
