import io
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image as PILImage

from beanmart import create_app
from beanmart.auth import issue_admin_token
from beanmart.extensions import EXTENSION_KEY, db as _db
from beanmart.models.admin import Admin
from beanmart.models.product import Product
from beanmart.models.variant import ProductVariant
from beanmart.services.fetch_service import RemoteFetcher


@pytest.fixture
def app():
    """Create application for testing, with a fresh in-memory database."""
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def storage(app):
    """The app's StorageClient with boto3 swapped for a mock."""
    storage = app.extensions[EXTENSION_KEY]["storage"]
    storage.client = MagicMock()
    storage.client.put_object.return_value = {}
    return storage


@pytest.fixture
def remote(app):
    """Route the app's URL downloads to an in-process handler.

    Usage: ``remote(lambda request: httpx.Response(200, content=...))``.
    Returns a list that records every requested URL.
    """
    calls = []

    def install(handler):
        def recording(request):
            calls.append(str(request.url))
            return handler(request)

        app.extensions[EXTENSION_KEY]["fetcher"] = RemoteFetcher(
            transport=httpx.MockTransport(recording),
            sleep=lambda seconds: None,
        )
        return calls

    return install


@pytest.fixture
def admin(db):
    admin = Admin(email="roaster@beanmart.test", is_active=True)
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {issue_admin_token(admin)}"}


@pytest.fixture
def product(db):
    product = Product(slug="kenya-aa", name="Kenya AA", currency="USD")
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture
def variant(db, product):
    variant = ProductVariant(
        product_id=product.id, sku="KEN-250", price=15.5, stock=10, weight_gram=250
    )
    db.session.add(variant)
    db.session.commit()
    return variant


@pytest.fixture
def make_image():
    """Build encoded test images with Pillow."""

    def build(width, height, fmt="JPEG", mode="RGB", color=(111, 78, 55)):
        if mode == "RGBA":
            color = color + (200,)
        img = PILImage.new(mode, (width, height), color)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return build
