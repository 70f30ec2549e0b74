"""Variant image ingestion: resolve → validate → transform → store → persist.

The HTTP views and the combined product flow both call ``ImageIngestor``
directly with typed arguments; it never sees a request object.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from flask import current_app

from beanmart.config import MAX_UPLOAD_BYTES
from beanmart.errors import BeanmartError, InvalidInput, TransformError
from beanmart.extensions import get_fetcher, get_storage
from beanmart.models.image import VariantImage
from beanmart.services import image_service, source_resolver, variant_image_service
from beanmart.services.source_resolver import ResolvedSource

logger = logging.getLogger(__name__)

ABORT = "abort"
SKIP = "skip"
BATCH_POLICIES = {ABORT, SKIP}


@dataclass
class IngestedImage:
    image: VariantImage
    storage_key: str

    def to_dict(self):
        data = self.image.to_dict()
        data["storageKey"] = self.storage_key
        return data


@dataclass
class ItemOutcome:
    """Result of resolving one batch candidate: either ``resolved`` or ``error``."""

    index: int
    label: str
    resolved: Optional[ResolvedSource] = None
    error: Optional[str] = None

    @property
    def ok(self):
        return self.resolved is not None


SINGLE_ITEM_MESSAGES = {
    "type": "Only image files are allowed",
    "size": "File size exceeds 50MB limit",
}
BATCH_ITEM_MESSAGES = {
    "type": "is not an image",
    "size": "exceeds 50MB limit",
}


def check_candidate(resolved):
    """Return None if the bytes may be ingested, else "type" or "size"."""
    if not (resolved.content_type or "").startswith("image/"):
        return "type"
    if len(resolved.data) > MAX_UPLOAD_BYTES:
        return "size"
    return None


class ImageIngestor:
    def __init__(self, storage, fetcher, batch_invalid_policy=ABORT):
        if batch_invalid_policy not in BATCH_POLICIES:
            raise ValueError(f"Unknown batch policy: {batch_invalid_policy}")
        self.storage = storage
        self.fetcher = fetcher
        self.batch_invalid_policy = batch_invalid_policy

    def ingest_one(self, variant_id, source, position=1):
        """Resolve a single source and store it as a variant image.

        Fails on the first hard error; see ``ingest_resolved``.
        """
        resolved = source_resolver.resolve(source, self.fetcher)
        logger.info(
            "Resolved %s: %s, %d bytes",
            source.describe(),
            resolved.content_type,
            len(resolved.data),
        )
        problem = check_candidate(resolved)
        if problem:
            raise InvalidInput(SINGLE_ITEM_MESSAGES[problem])
        return self.ingest_resolved(variant_id, resolved, position)

    def ingest_many(self, variant_id, sources, position=1, positions=None):
        """Ingest a batch in order.

        URL-fetch and data-URI failures are logged and the item is dropped.
        Type/size failures abort the whole batch before anything is stored,
        unless the ingestor was built with the ``skip`` policy.

        Returns:
            list of IngestedImage, one per stored item
        """
        outcomes = [self._resolve_outcome(i, s) for i, s in enumerate(sources)]
        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Skipping batch item %d (%s): %s",
                    outcome.index + 1,
                    outcome.label,
                    outcome.error,
                )

        candidates = [o.resolved for o in outcomes if o.ok]
        if not candidates:
            raise InvalidInput("No valid files provided")

        accepted = []
        for i, resolved in enumerate(candidates):
            problem = check_candidate(resolved)
            if problem is None:
                accepted.append(resolved)
            elif self.batch_invalid_policy == ABORT:
                raise InvalidInput(
                    f"File at position {i + 1} {BATCH_ITEM_MESSAGES[problem]}"
                )
            else:
                logger.warning(
                    "Dropping batch file at position %d: %s",
                    i + 1,
                    BATCH_ITEM_MESSAGES[problem],
                )

        if not accepted:
            raise InvalidInput("No valid files provided")

        results = []
        for i, resolved in enumerate(accepted):
            if positions is not None and i < len(positions):
                item_position = positions[i]
            else:
                item_position = position + i
            results.append(self.ingest_resolved(variant_id, resolved, item_position))
        return results

    def ingest_resolved(self, variant_id, resolved, position=1):
        """Transform, store and persist already-validated bytes.

        Raises:
            NotFound if the variant does not exist (checked before storing)
            UploadError if the object store rejects the upload
            PersistenceError if the row cannot be written
        """
        variant_image_service.ensure_variant_exists(variant_id)

        data, content_type = resolved.data, resolved.content_type
        try:
            processed = image_service.transform(data)
        except TransformError as e:
            logger.warning(
                "Image processing failed for %s, using original: %s",
                resolved.filename,
                e.error,
            )
        else:
            logger.info(
                "Processed %s: %dx%d -> %dx%d resized=%s",
                resolved.filename,
                processed.original_width,
                processed.original_height,
                processed.width,
                processed.height,
                processed.was_resized,
            )
            if processed.was_resized:
                data = processed.data
                content_type = image_service.OUTPUT_CONTENT_TYPE

        upload = self.storage.put(data, resolved.filename, content_type)
        image = variant_image_service.create(
            {"variantId": variant_id, "url": upload.url, "position": position}
        )
        return IngestedImage(image=image, storage_key=upload.key)

    def _resolve_outcome(self, index, source):
        label = source.describe()
        try:
            resolved = source_resolver.resolve(source, self.fetcher)
        except BeanmartError as e:
            return ItemOutcome(index=index, label=label, error=e.message)
        return ItemOutcome(index=index, label=label, resolved=resolved)


def get_ingestor():
    return ImageIngestor(
        storage=get_storage(),
        fetcher=get_fetcher(),
        batch_invalid_policy=current_app.config.get("BATCH_INVALID_ITEM_POLICY", ABORT),
    )
