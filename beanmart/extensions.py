import logging
from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager

logger = logging.getLogger(__name__)

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()

EXTENSION_KEY = "beanmart"


def init_handles(app):
    """Build the process-wide storage and fetcher handles once per app.

    Raises ConfigurationError when storage settings are missing, so the app
    refuses to start rather than failing on the first upload.
    """
    from beanmart.services.fetch_service import RemoteFetcher
    from beanmart.services.storage_service import StorageClient

    storage = StorageClient.from_config(app.config)
    fetcher = RemoteFetcher()
    app.extensions[EXTENSION_KEY] = {"storage": storage, "fetcher": fetcher}
    logger.info(
        "Storage ready: bucket=%s endpoint=%s",
        storage.bucket,
        storage.endpoint,
    )


def get_storage():
    return current_app.extensions[EXTENSION_KEY]["storage"]


def get_fetcher():
    return current_app.extensions[EXTENSION_KEY]["fetcher"]
