"""Tests for the ingestion pipeline (storage and network mocked)."""
import io
import uuid
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from PIL import Image as PILImage

from beanmart.config import MAX_UPLOAD_BYTES
from beanmart.errors import FetchError, InvalidInput, NotFound, UploadError
from beanmart.models.image import VariantImage
from beanmart.services import image_service
from beanmart.services.fetch_service import FetchedImage
from beanmart.services.ingestion_service import ABORT, SKIP, ImageIngestor, check_candidate
from beanmart.services.source_resolver import (
    Base64Source,
    FileSource,
    ResolvedSource,
    UrlSource,
)


def _fetcher(responses):
    """Fake fetcher: url -> FetchedImage, or an exception to raise."""
    fetcher = MagicMock()

    def fetch(url):
        result = responses[url]
        if isinstance(result, Exception):
            raise result
        return result

    fetcher.fetch.side_effect = fetch
    return fetcher


def _uploaded(storage):
    return [c.kwargs for c in storage.client.put_object.call_args_list]


def test_size_check_boundary():
    at_limit = ResolvedSource(b"\0" * MAX_UPLOAD_BYTES, "image/jpeg", "a.jpg")
    over_limit = ResolvedSource(b"\0" * (MAX_UPLOAD_BYTES + 1), "image/jpeg", "a.jpg")
    assert check_candidate(at_limit) is None
    assert check_candidate(over_limit) == "size"


def test_type_check():
    assert check_candidate(ResolvedSource(b"x", "application/pdf", "a.pdf")) == "type"
    assert check_candidate(ResolvedSource(b"x", "", "a")) == "type"


def test_large_image_stored_within_bounding_box(db, variant, storage, make_image):
    ingestor = ImageIngestor(storage, MagicMock())
    source = FileSource(make_image(1200, 900), "espresso.jpg", "image/jpeg")

    result = ingestor.ingest_one(variant.id, source, position=2)

    (upload,) = _uploaded(storage)
    assert upload["ContentType"] == "image/jpeg"
    stored = PILImage.open(io.BytesIO(upload["Body"]))
    assert stored.width <= 700 and stored.height <= 700
    assert result.image.position == 2
    assert result.image.url == storage.public_url(result.storage_key)
    assert result.storage_key.endswith(".jpg")


def test_small_image_stored_as_is(db, variant, storage, make_image):
    png = make_image(300, 200, fmt="PNG")
    ingestor = ImageIngestor(storage, MagicMock())

    ingestor.ingest_one(variant.id, FileSource(png, "bag.png", "image/png"))

    (upload,) = _uploaded(storage)
    assert upload["Body"] == png
    assert upload["ContentType"] == "image/png"


def test_resized_png_keeps_original_extension(db, variant, storage, make_image):
    ingestor = ImageIngestor(storage, MagicMock())
    result = ingestor.ingest_one(
        variant.id, FileSource(make_image(900, 900, fmt="PNG"), "bag.png", "image/png")
    )
    (upload,) = _uploaded(storage)
    assert upload["ContentType"] == "image/jpeg"
    assert result.storage_key.endswith(".png")


def test_transform_failure_falls_back_to_original(db, variant, storage):
    ingestor = ImageIngestor(storage, MagicMock())
    garbage = b"\xff\xd8 truncated jpeg"

    ingestor.ingest_one(variant.id, FileSource(garbage, "broken.jpg", "image/jpeg"))

    (upload,) = _uploaded(storage)
    assert upload["Body"] == garbage
    assert upload["ContentType"] == "image/jpeg"
    assert VariantImage.query.count() == 1


def test_file_at_size_limit_accepted(db, variant, storage):
    ingestor = ImageIngestor(storage, MagicMock())
    data = b"\0" * MAX_UPLOAD_BYTES

    ingestor.ingest_one(variant.id, FileSource(data, "big.jpg", "image/jpeg"))
    assert VariantImage.query.count() == 1


def test_file_over_size_limit_rejected(db, variant, storage):
    ingestor = ImageIngestor(storage, MagicMock())
    data = b"\0" * (MAX_UPLOAD_BYTES + 1)

    with pytest.raises(InvalidInput) as exc:
        ingestor.ingest_one(variant.id, FileSource(data, "big.jpg", "image/jpeg"))

    assert exc.value.message == "File size exceeds 50MB limit"
    storage.client.put_object.assert_not_called()


def test_non_image_rejected(db, variant, storage):
    ingestor = ImageIngestor(storage, MagicMock())
    with pytest.raises(InvalidInput) as exc:
        ingestor.ingest_one(variant.id, FileSource(b"%PDF", "menu.pdf", "application/pdf"))
    assert exc.value.message == "Only image files are allowed"
    assert VariantImage.query.count() == 0


def test_unknown_variant_rejected_before_upload(db, storage, make_image):
    ingestor = ImageIngestor(storage, MagicMock())
    with pytest.raises(NotFound):
        ingestor.ingest_one(uuid.uuid4(), FileSource(make_image(10, 10), "a.jpg", "image/jpeg"))
    storage.client.put_object.assert_not_called()


def test_url_not_found_leaves_no_trace(db, variant, storage):
    url = "https://images.test/missing.jpg"
    fetcher = _fetcher({url: FetchError("Image not found at URL", kind="not_found")})

    with pytest.raises(FetchError):
        ImageIngestor(storage, fetcher).ingest_one(variant.id, UrlSource(url))

    storage.client.put_object.assert_not_called()
    assert VariantImage.query.count() == 0


def test_upload_failure_leaves_no_row(db, variant, storage, make_image):
    storage.client.put_object.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
    )
    with pytest.raises(UploadError):
        ImageIngestor(storage, MagicMock()).ingest_one(
            variant.id, FileSource(make_image(10, 10), "a.jpg", "image/jpeg")
        )
    assert VariantImage.query.count() == 0


def test_batch_tolerates_failed_download(db, variant, storage, make_image):
    png = make_image(20, 20, fmt="PNG")
    urls = [f"https://images.test/{i}.png" for i in range(3)]
    fetcher = _fetcher(
        {
            urls[0]: FetchedImage(png, "image/png"),
            urls[1]: FetchError("Failed to connect to image host", kind="connection"),
            urls[2]: FetchedImage(png, "image/png"),
        }
    )

    results = ImageIngestor(storage, fetcher).ingest_many(
        variant.id, [UrlSource(u) for u in urls]
    )

    assert len(results) == 2
    assert [r.image.position for r in results] == [1, 2]
    assert storage.client.put_object.call_count == 2


def test_batch_with_every_item_failing(db, variant, storage):
    fetcher = _fetcher({"https://images.test/a.png": FetchError("timeout", kind="timeout")})
    with pytest.raises(InvalidInput) as exc:
        ImageIngestor(storage, fetcher).ingest_many(
            variant.id,
            [UrlSource("https://images.test/a.png"), Base64Source("garbage")],
        )
    assert exc.value.message == "No valid files provided"


def test_batch_abort_policy_stores_nothing(db, variant, storage, make_image):
    sources = [
        FileSource(make_image(10, 10), "a.jpg", "image/jpeg"),
        FileSource(b"plain text", "notes.txt", "text/plain"),
        FileSource(make_image(10, 10), "c.jpg", "image/jpeg"),
    ]

    with pytest.raises(InvalidInput) as exc:
        ImageIngestor(storage, MagicMock(), ABORT).ingest_many(variant.id, sources)

    assert exc.value.message == "File at position 2 is not an image"
    storage.client.put_object.assert_not_called()
    assert VariantImage.query.count() == 0


def test_batch_skip_policy_drops_bad_item(db, variant, storage, make_image):
    sources = [
        FileSource(make_image(10, 10), "a.jpg", "image/jpeg"),
        FileSource(b"plain text", "notes.txt", "text/plain"),
        FileSource(make_image(10, 10), "c.jpg", "image/jpeg"),
    ]

    results = ImageIngestor(storage, MagicMock(), SKIP).ingest_many(variant.id, sources)
    assert len(results) == 2


def test_batch_explicit_positions(db, variant, storage, make_image):
    sources = [FileSource(make_image(10, 10), f"{i}.jpg", "image/jpeg") for i in range(3)]

    results = ImageIngestor(storage, MagicMock()).ingest_many(
        variant.id, sources, position=5, positions=[9, 7]
    )
    assert [r.image.position for r in results] == [9, 7, 7]


def test_batch_positions_count_from_base(db, variant, storage, make_image):
    sources = [FileSource(make_image(10, 10), f"{i}.jpg", "image/jpeg") for i in range(2)]
    results = ImageIngestor(storage, MagicMock()).ingest_many(variant.id, sources, position=3)
    assert [r.image.position for r in results] == [3, 4]


def test_unknown_policy_rejected(storage):
    with pytest.raises(ValueError):
        ImageIngestor(storage, MagicMock(), "retry")


def test_transform_called_once_per_stored_item(db, variant, storage, make_image):
    sources = [FileSource(make_image(10, 10), f"{i}.jpg", "image/jpeg") for i in range(2)]
    with patch.object(image_service, "transform", wraps=image_service.transform) as transform:
        ImageIngestor(storage, MagicMock()).ingest_many(variant.id, sources)
    assert transform.call_count == 2
