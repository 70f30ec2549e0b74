import os

from dotenv import load_dotenv
from flask import Flask

load_dotenv()


def _pick_config_name():
    name = os.environ.get("FLASK_ENV")
    if name:
        return name
    # Hosted platforms set PORT; never fall back to debug settings there.
    return "production" if os.environ.get("PORT") else "development"


def create_app(config_name=None):
    app = Flask(__name__)

    from beanmart.config import config_map

    config_cls = config_map.get(config_name or _pick_config_name(), config_map["development"])
    app.config.from_object(config_cls)
    if hasattr(config_cls, "init_app"):
        config_cls.init_app(app)

    from beanmart.extensions import db, init_handles, jwt, migrate

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    # Storage and fetcher are built once here; a bad storage config stops startup
    init_handles(app)

    # Models must be imported before Alembic autogenerates
    from beanmart.models import Admin, Product, ProductVariant, VariantImage  # noqa: F401
    from beanmart.errors import register_error_handlers
    from beanmart.blueprints.api import api_bp
    from beanmart.cli import register_cli

    register_error_handlers(app)
    app.register_blueprint(api_bp)
    register_cli(app)

    @app.route("/health")
    def health():
        body = {"status": "ok", "db": "ok"}
        try:
            db.session.execute(db.text("SELECT 1"))
        except Exception:
            app.logger.exception("Health check: database unreachable")
            body.update(status="degraded", db="error")
        return body, 200 if body["db"] == "ok" else 503

    return app
