import logging

from sqlalchemy.exc import SQLAlchemyError

from beanmart.errors import InvalidInput, NotFound, PersistenceError
from beanmart.extensions import db
from beanmart.models.image import VariantImage
from beanmart.models.variant import ProductVariant
from beanmart.schemas import VariantImageCreate, VariantImageUpdate

logger = logging.getLogger(__name__)


def find_by_id(image_id):
    return db.session.get(VariantImage, image_id)


def find_by_variant_id(variant_id):
    return (
        VariantImage.query.filter_by(variant_id=variant_id)
        .order_by(VariantImage.position.asc(), VariantImage.created_at.asc())
        .all()
    )


def ensure_variant_exists(variant_id):
    variant = db.session.get(ProductVariant, variant_id)
    if variant is None:
        raise NotFound("Product variant not found", error=str(variant_id))
    return variant


def create(data):
    """Insert a variant image row.

    Args:
        data: mapping or VariantImageCreate with variantId, url, position

    Raises:
        pydantic.ValidationError on a malformed shape
        NotFound if the variant does not exist
        PersistenceError on a database failure
    """
    if not isinstance(data, VariantImageCreate):
        data = VariantImageCreate.model_validate(data)
    ensure_variant_exists(data.variant_id)

    image = VariantImage(
        variant_id=data.variant_id,
        url=data.url,
        position=data.position,
    )
    db.session.add(image)
    _commit("create variant image")
    return image


def update(image_id, data):
    """Apply only the provided fields. Returns None if no row matched.

    ``url`` is written as given; it is not checked against the object store.
    """
    if not isinstance(data, VariantImageUpdate):
        data = VariantImageUpdate.model_validate(data)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise InvalidInput("No fields to update")

    image = find_by_id(image_id)
    if image is None:
        return None
    if "variant_id" in changes:
        ensure_variant_exists(changes["variant_id"])

    for field, value in changes.items():
        setattr(image, field, value)
    _commit("update variant image")
    return image


def delete(image_id):
    """Delete the row only."""
    image = find_by_id(image_id)
    if image is None:
        return False
    db.session.delete(image)
    _commit("delete variant image")
    return True


def delete_with_file_cleanup(image_id, storage):
    """Delete the row, then try to remove its object from storage.

    Storage failures are logged and never fail the call.
    """
    image = find_by_id(image_id)
    if image is None:
        return False

    url = image.url
    db.session.delete(image)
    _commit("delete variant image")

    key = storage.key_from_url(url)
    if key is None:
        logger.warning("Could not extract storage key from %s, file left in place", url)
    elif not storage.delete(key):
        logger.warning("Variant image %s deleted but object %s was not removed", image_id, key)
    return True


def smart_delete(image_id, storage):
    """Delete the object first, then always the row.

    Returns:
        dict with success, message and deletedFromStorage. deletedFromStorage
        is False when the object was already gone or could not be removed.
    """
    image = find_by_id(image_id)
    if image is None:
        return {
            "success": False,
            "message": "Variant image not found",
            "deletedFromStorage": False,
        }

    key = storage.key_from_url(image.url)
    deleted_from_storage = storage.delete(key) if key else False

    db.session.delete(image)
    _commit("delete variant image")

    if deleted_from_storage:
        message = "Variant image and file deleted successfully"
    else:
        message = "Variant image deleted; file was not present in storage"
    logger.info("Smart delete %s: storage=%s", image_id, deleted_from_storage)
    return {
        "success": True,
        "message": message,
        "deletedFromStorage": deleted_from_storage,
    }


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Database error during %s", action)
        raise PersistenceError(f"Failed to {action}", error=type(e).__name__) from e
