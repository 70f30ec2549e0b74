from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

from beanmart.blueprints.api import variant_images, products  # noqa: F401, E402
