import time

from flask import Flask, g, request
from google.cloud import datastore
from werkzeug.middleware.proxy_fix import ProxyFix

from . import boats, loads, login, users
from .auth import VERIFIER_EXTENSION, TokenVerifier
from .config import from_env
from .errors import register_error_handlers
from .store import STORE_EXTENSION, EntityStore


def create_app(config=None, store=None, verifier=None):
    """Build the application.

    ``store`` and ``verifier`` default to a Cloud Datastore backed
    EntityStore and an Auth0 TokenVerifier built from the configuration.
    """
    app = Flask(__name__)
    app.config.update(from_env())
    if config:
        app.config.update(config)
    app.secret_key = app.config["SECRET_KEY"]

    app.logger.setLevel(app.config["LOG_LEVEL"])

    if app.config["APP_ENV"] == "production":
        # Serve secure cookies behind the App Engine front end
        app.config["SESSION_COOKIE_SECURE"] = True
        app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    if store is None:
        store = EntityStore(datastore.Client())
    if verifier is None:
        verifier = TokenVerifier(app.config["AUTH0_DOMAIN"], app.config["AUTH0_AUDIENCE"])
    app.extensions[STORE_EXTENSION] = store
    app.extensions[VERIFIER_EXTENSION] = verifier
    login.init_oauth(app)

    register_error_handlers(app)

    app.register_blueprint(boats.bp)
    app.register_blueprint(loads.bp)
    app.register_blueprint(login.bp)
    app.register_blueprint(users.bp)

    @app.before_request
    def start_timer():
        g.started = time.perf_counter()

    @app.after_request
    def log_request(response):
        elapsed = (time.perf_counter() - g.get("started", time.perf_counter())) * 1000
        app.logger.info("%s %s %s %.1f ms", request.method, request.full_path.rstrip("?"),
                        response.status_code, elapsed)
        return response

    return app
