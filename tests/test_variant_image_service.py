"""Tests for the variant image repository."""
import uuid

import pytest
from botocore.exceptions import ClientError
from pydantic import ValidationError

from beanmart.errors import InvalidInput, NotFound
from beanmart.models.image import VariantImage
from beanmart.services import variant_image_service


def _stored_image(storage, variant, key="product-images/abc.jpg", position=1):
    return variant_image_service.create(
        {"variantId": variant.id, "url": storage.public_url(key), "position": position}
    )


def test_create_and_find(db, variant):
    image = variant_image_service.create(
        {"variantId": str(variant.id), "url": "https://cdn.test/a.jpg"}
    )

    found = variant_image_service.find_by_id(image.id)
    assert found.url == "https://cdn.test/a.jpg"
    assert found.position == 1
    assert found.variant_id == variant.id


def test_create_for_missing_variant(db):
    with pytest.raises(NotFound):
        variant_image_service.create({"variantId": uuid.uuid4(), "url": "https://cdn.test/a.jpg"})
    assert VariantImage.query.count() == 0


def test_create_rejects_bad_url(db, variant):
    with pytest.raises(ValidationError):
        variant_image_service.create({"variantId": variant.id, "url": "not-a-url"})


def test_find_by_variant_orders_by_position(db, variant):
    for position in (3, 1, 2):
        variant_image_service.create(
            {"variantId": variant.id, "url": f"https://cdn.test/{position}.jpg", "position": position}
        )
    images = variant_image_service.find_by_variant_id(variant.id)
    assert [img.position for img in images] == [1, 2, 3]


def test_find_by_variant_without_images(db, variant):
    assert variant_image_service.find_by_variant_id(variant.id) == []


def test_update_only_given_fields(db, variant):
    image = variant_image_service.create({"variantId": variant.id, "url": "https://cdn.test/a.jpg"})

    updated = variant_image_service.update(image.id, {"position": 4})
    assert updated.position == 4
    assert updated.url == "https://cdn.test/a.jpg"


def test_update_with_no_fields(db, variant):
    image = variant_image_service.create({"variantId": variant.id, "url": "https://cdn.test/a.jpg"})
    with pytest.raises(InvalidInput):
        variant_image_service.update(image.id, {})


def test_update_missing_row(db):
    assert variant_image_service.update(uuid.uuid4(), {"position": 2}) is None


def test_update_to_unknown_variant(db, variant):
    image = variant_image_service.create({"variantId": variant.id, "url": "https://cdn.test/a.jpg"})
    with pytest.raises(NotFound):
        variant_image_service.update(image.id, {"variantId": str(uuid.uuid4())})


def test_delete_row_only(db, variant, storage):
    image = _stored_image(storage, variant)
    assert variant_image_service.delete(image.id) is True
    assert variant_image_service.delete(image.id) is False
    storage.client.delete_object.assert_not_called()


def test_delete_with_file_cleanup(db, variant, storage):
    image = _stored_image(storage, variant)

    assert variant_image_service.delete_with_file_cleanup(image.id, storage) is True
    assert variant_image_service.find_by_id(image.id) is None
    storage.client.delete_object.assert_called_once_with(
        Bucket="beanmart-test", Key="product-images/abc.jpg"
    )


def test_delete_with_file_cleanup_tolerates_storage_failure(db, variant, storage):
    image = _stored_image(storage, variant)
    storage.client.delete_object.side_effect = ClientError(
        {"Error": {"Code": "InternalError", "Message": "boom"}}, "DeleteObject"
    )

    assert variant_image_service.delete_with_file_cleanup(image.id, storage) is True
    assert variant_image_service.find_by_id(image.id) is None


def test_delete_with_file_cleanup_foreign_url(db, variant, storage):
    image = variant_image_service.create({"variantId": variant.id, "url": "https://elsewhere.test/a.jpg"})

    assert variant_image_service.delete_with_file_cleanup(image.id, storage) is True
    storage.client.delete_object.assert_not_called()


def test_smart_delete_reports_storage_removal(db, variant, storage):
    image = _stored_image(storage, variant)

    result = variant_image_service.smart_delete(image.id, storage)
    assert result["success"] is True
    assert result["deletedFromStorage"] is True
    assert variant_image_service.find_by_id(image.id) is None


def test_smart_delete_object_already_gone(db, variant, storage):
    image = _stored_image(storage, variant)
    storage.client.head_object.side_effect = ClientError(
        {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"
    )

    result = variant_image_service.smart_delete(image.id, storage)
    assert result["success"] is True
    assert result["deletedFromStorage"] is False
    assert variant_image_service.find_by_id(image.id) is None


def test_smart_delete_missing_row(db, storage):
    result = variant_image_service.smart_delete(uuid.uuid4(), storage)
    assert result == {
        "success": False,
        "message": "Variant image not found",
        "deletedFromStorage": False,
    }
    storage.client.head_object.assert_not_called()
