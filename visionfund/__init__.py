"""Application factory and app-wide configuration."""

from typing import Optional

from flask import Flask
from flask_cors import CORS

from visionfund.api.routes import api_bp
from visionfund.config import Settings
from visionfund.logs import get_logger, setup_logging


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Build the Flask app instance."""
    settings = settings or Settings()
    setup_logging(settings.log_level)

    app = Flask(__name__)
    app.config["VISIONFUND_SETTINGS"] = settings

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    get_logger(__name__).info("%s ready", settings.app_name)
    return app
