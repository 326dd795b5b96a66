"""
TPL Flask application
"""

from flask import Flask
from flask_cors import CORS

from ..tpl.constants import SAMPLE_RATE
from ..tpl.profiles import DEFAULT_PRESET
from ..tpl.vocabulary import DEFAULT_PREFIX


def create_app(config=None):
    app = Flask(__name__)
    CORS(app)

    app.config.from_mapping(
        TPL_PRESET=DEFAULT_PRESET,
        TPL_PREFIX=DEFAULT_PREFIX,
        TPL_SAMPLE_RATE=SAMPLE_RATE,
        MAX_CONTENT_LENGTH=16 * 1024 * 1024,
    )
    # FLASK_TPL_PRESET=deep etc.
    app.config.from_prefixed_env()
    if config:
        app.config.from_mapping(config)

    # register blueprints
    from .routes import api_bp, views_bp
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(views_bp)

    return app
