"""Variant image routes: listing, JSON CRUD and the image upload endpoints."""
import logging

from flask import jsonify, request

from beanmart.auth import admin_required
from beanmart.blueprints.api import api_bp
from beanmart.blueprints.api.payload import parse_uuid, request_payload
from beanmart.config import MAX_FILES_PER_REQUEST
from beanmart.errors import InvalidInput, NotFound
from beanmart.extensions import get_storage
from beanmart.schemas import UploadRequest
from beanmart.services import source_resolver, variant_image_service
from beanmart.services.ingestion_service import get_ingestor

logger = logging.getLogger(__name__)


@api_bp.route("/variants/<variant_id>/images")
def list_variant_images(variant_id):
    variant_id = parse_uuid(variant_id, "variant ID")
    images = variant_image_service.find_by_variant_id(variant_id)
    return jsonify({"success": True, "data": [img.to_dict() for img in images]})


@api_bp.route("/variant-images/<image_id>")
def get_variant_image(image_id):
    image = variant_image_service.find_by_id(parse_uuid(image_id))
    if image is None:
        raise NotFound("Variant image not found")
    return jsonify({"success": True, "data": image.to_dict()})


@api_bp.route("/variant-images", methods=["POST"])
@admin_required
def create_variant_image():
    """Record an image by URL, or ingest an attached ``file``."""
    if request.files.get("file"):
        return upload_variant_image()

    image = variant_image_service.create(request_payload())
    return jsonify({"success": True, "data": image.to_dict()}), 201


@api_bp.route("/variant-images/<image_id>", methods=["PUT"])
@admin_required
def update_variant_image(image_id):
    image = variant_image_service.update(parse_uuid(image_id), request_payload())
    if image is None:
        raise NotFound("Variant image not found")
    return jsonify({"success": True, "data": image.to_dict()})


@api_bp.route("/variant-images/<image_id>", methods=["DELETE"])
@admin_required
def delete_variant_image(image_id):
    deleted = variant_image_service.delete_with_file_cleanup(
        parse_uuid(image_id), get_storage()
    )
    if not deleted:
        raise NotFound("Variant image not found")
    return jsonify({"success": True, "message": "Variant image deleted successfully"})


@api_bp.route("/variant-images/<image_id>/smart", methods=["DELETE"])
@admin_required
def smart_delete_variant_image(image_id):
    result = variant_image_service.smart_delete(parse_uuid(image_id), get_storage())
    if not result["success"]:
        raise NotFound(result["message"])
    return jsonify(result)


@api_bp.route("/variant-images/upload-advanced", methods=["POST"])
@admin_required
def upload_variant_image():
    """Single image from a file, ``url``/``imageUrl`` or ``imageData``."""
    payload = request_payload()
    params = UploadRequest.model_validate(payload)
    source = source_resolver.parse_source(payload, request.files.get("file"))

    result = get_ingestor().ingest_one(params.variant_id, source, params.position)
    return (
        jsonify(
            {
                "success": True,
                "data": result.to_dict(),
                "message": "Variant image uploaded successfully",
            }
        ),
        201,
    )


@api_bp.route("/variant-images/multiple", methods=["POST"])
@api_bp.route("/variant-images/upload-advanced-multiple", methods=["POST"])
@admin_required
def upload_variant_images():
    """Batch of images from ``files``, ``urls[]`` and ``imageDataArray[]``."""
    files = request.files.getlist("files")
    if len(files) > MAX_FILES_PER_REQUEST:
        raise InvalidInput(
            f"Too many files. At most {MAX_FILES_PER_REQUEST} files per request"
        )

    payload = request_payload()
    params = UploadRequest.model_validate(payload)
    sources = source_resolver.parse_sources(payload, files)

    results = get_ingestor().ingest_many(
        params.variant_id,
        sources,
        position=params.position,
        positions=params.positions,
    )
    return (
        jsonify(
            {
                "success": True,
                "data": [r.to_dict() for r in results],
                "message": f"{len(results)} variant images uploaded successfully",
            }
        ),
        201,
    )
