from flask import Flask, request, g
from dotenv import load_dotenv
from app.config import get_config_class
from app.logging import configure_logging
from app.errors import errors_bp
from app.cli import register_cli
from app.api import register_api_v1
from app.services.cart_store import init_cart_store
from app.version import API_PREFIX
from app import metrics as cart_metrics
from flask_cors import CORS
from flasgger import Swagger
from prometheus_client import CollectorRegistry
from prometheus_flask_exporter import PrometheusMetrics
from flask_migrate import Migrate
import extensions
import logging
import os
import uuid
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator
from app.telemetry import init_tracing
from models import db

EXPOSED_HEADERS = ("X-Request-ID", "traceparent")

SWAGGER_TAGS = [
    {"name": "Cart", "description": "Cart items, summary and validation"},
    {"name": "Saved", "description": "Saved-for-later items"},
    {"name": "Promo", "description": "Promo codes"},
]


def _cors_origins(app):
    allowed = app.config.get("CORS_ALLOWED_ORIGINS", "*")
    if not isinstance(allowed, str):
        return allowed or "*"
    allowed = allowed.strip()
    if allowed == "*":
        return "*"
    return [o.strip() for o in allowed.split(",") if o.strip()]


def _init_docs(app):
    Swagger(
        app,
        config={
            "headers": [],
            "specs": [
                {
                    "endpoint": "apispec",
                    "route": "/apispec.json",
                    "rule_filter": lambda rule: rule.rule.startswith(f"{API_PREFIX}/"),
                    "model_filter": lambda tag: True,
                }
            ],
            "swagger_ui": True,
            "specs_route": "/docs/",
        },
        template={"info": {"title": "partscart API", "version": "1.0.0"}, "tags": SWAGGER_TAGS},
    )


def _init_prometheus(app):
    # test apps get their own registry so collectors are not registered twice
    registry = CollectorRegistry(auto_describe=True) if app.config.get("TESTING") else None
    if registry is not None:
        metrics = PrometheusMetrics(app, path="/metrics", registry=registry)
    else:
        metrics = PrometheusMetrics(app, path="/metrics")
    if not app.config.get("TESTING") and not os.environ.get("METRICS_APP_INFO_SET"):
        metrics.info("partscart_info", "Cart service info", version="1.0.0")
        os.environ["METRICS_APP_INFO_SET"] = "1"
    return metrics


def _register_request_hooks(app):
    @app.before_request
    def _bind_request_id():
        g.request_id = (request.headers.get("X-Request-ID") or uuid.uuid4().hex)[:100]
        app.logger.info(f"request start {request.method} {request.path}")

    @app.after_request
    def _decorate_response(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", None) or uuid.uuid4().hex
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        exposed = [h.strip() for h in resp.headers.get("Access-Control-Expose-Headers", "").split(",") if h.strip()]
        exposed += [h for h in EXPOSED_HEADERS if h not in exposed]
        resp.headers["Access-Control-Expose-Headers"] = ",".join(exposed)

        carrier = {}
        TraceContextTextMapPropagator().inject(carrier)
        if carrier.get("traceparent"):
            resp.headers["traceparent"] = carrier["traceparent"]
        return resp


def create_app(config_object=None):
    """Application factory."""
    load_dotenv()
    app = Flask(__name__)
    app.config.from_object(config_object if config_object is not None else get_config_class())

    configure_logging(app)
    register_cli(app)

    extensions.limiter.init_app(app)
    app.limiter = extensions.limiter
    Migrate(app, db, compare_type=True, render_as_batch=True)
    _init_docs(app)
    _init_prometheus(app)
    CORS(
        app,
        origins=_cors_origins(app),
        supports_credentials=True,
        allow_headers=["Content-Type", "X-User-ID", "X-Request-ID"],
        expose_headers=list(EXPOSED_HEADERS),
    )

    app.register_blueprint(errors_bp)
    if app.config.get("TESTING"):
        from app.test_support import test_support_bp
        app.register_blueprint(test_support_bp)
        app.register_blueprint(test_support_bp, url_prefix=f"{API_PREFIX}/test_support", name="test_support_bp_v1")
    register_api_v1(app)
    _register_request_hooks(app)

    db.init_app(app)
    cart_metrics.init_app(app)
    init_tracing(app)
    init_cart_store(app)
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        with app.app_context():
            db.create_all()
            logging.info("Cart tables created")

    @app.route("/health")
    def health():
        return {"status": "ok", "cart_store": app.config.get("CART_STORE")}, 200

    return app
