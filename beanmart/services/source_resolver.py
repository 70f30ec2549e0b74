"""Turn an upload request into raw image bytes.

A request names its image one of three ways: an attached file, a remote URL,
or a pasted ``data:image/...;base64,`` URI. ``parse_source`` picks exactly one
descriptor at the request boundary; ``resolve`` turns it into bytes.
"""
import base64
import binascii
import logging
import os
import re
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from beanmart.errors import InvalidInput

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"data:image/(\w+);base64,([a-zA-Z0-9+/=]+)", re.ASCII)

GENERIC_CONTENT_TYPE = "application/octet-stream"

EXTENSION_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "tiff": "image/tiff",
}


@dataclass
class FileSource:
    data: bytes
    filename: str
    content_type: str

    def describe(self):
        return f"file {self.filename!r}"


@dataclass
class UrlSource:
    url: str

    def describe(self):
        return f"url {self.url}"


@dataclass
class Base64Source:
    data_uri: str

    def describe(self):
        return "pasted image"


@dataclass
class ResolvedSource:
    data: bytes
    content_type: str
    filename: str


def parse_source(payload, file=None):
    """Pick the single source for a one-image upload.

    Precedence: attached file, then ``url``/``imageUrl``, then ``imageData``.

    Raises:
        InvalidInput when none is present
    """
    if file is not None and file.filename:
        return file_source(file)
    url = payload.get("url") or payload.get("imageUrl")
    if url:
        return UrlSource(url=url)
    image_data = payload.get("imageData")
    if image_data:
        return Base64Source(data_uri=image_data)
    raise InvalidInput(
        "No file provided. Please provide either a file, URL, or base64 image data"
    )


def parse_sources(payload, files=()):
    """Collect every candidate of a batch upload, files first, then URLs, then pastes."""
    sources = [file_source(f) for f in files if f is not None and f.filename]
    sources.extend(UrlSource(url=u) for u in _as_list(payload.get("urls")) if u)
    sources.extend(
        Base64Source(data_uri=d) for d in _as_list(payload.get("imageDataArray")) if d
    )
    return sources


def file_source(file):
    """Read a werkzeug ``FileStorage`` as-is."""
    return FileSource(
        data=file.read(),
        filename=file.filename,
        content_type=file.mimetype or GENERIC_CONTENT_TYPE,
    )


def resolve(source, fetcher):
    """Return the bytes, content type and original filename for a source.

    Raises:
        InvalidInput for malformed URLs or data URIs
        FetchError when a URL download fails
    """
    if isinstance(source, FileSource):
        return ResolvedSource(
            data=source.data,
            content_type=source.content_type,
            filename=source.filename,
        )
    if isinstance(source, UrlSource):
        return _resolve_url(source.url, fetcher)
    if isinstance(source, Base64Source):
        return decode_data_uri(source.data_uri)
    raise TypeError(f"Unknown image source: {source!r}")


def _resolve_url(url, fetcher):
    if not is_valid_url(url):
        raise InvalidInput("Invalid URL provided")

    fetched = fetcher.fetch(url)
    content_type = (fetched.content_type or "").split(";")[0].strip().lower()
    if not content_type or content_type == GENERIC_CONTENT_TYPE:
        content_type = content_type_from_url(url)
    return ResolvedSource(
        data=fetched.content,
        content_type=content_type,
        filename=filename_from_url(url),
    )


def decode_data_uri(data_uri):
    match = DATA_URI_RE.fullmatch(data_uri) if isinstance(data_uri, str) else None
    if not match:
        raise InvalidInput(
            "Invalid base64 image data. "
            "Expected format: data:image/[type];base64,[data]"
        )
    subtype, payload = match.groups()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("Invalid base64 image data", error=str(e)) from e
    return ResolvedSource(
        data=data,
        content_type=f"image/{subtype.lower()}",
        filename=f"pasted-image.{subtype.lower()}",
    )


def is_valid_url(url):
    if not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        # e.g. an unbalanced IPv6 bracket
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def content_type_from_url(url):
    ext = os.path.splitext(urlsplit(url).path)[1].lstrip(".").lower()
    return EXTENSION_CONTENT_TYPES.get(ext, GENERIC_CONTENT_TYPE)


def filename_from_url(url):
    name = unquote(urlsplit(url).path.rsplit("/", 1)[-1])
    return name or "downloaded-file"


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]
