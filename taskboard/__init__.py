# taskboard/__init__.py
import logging
from flask import Flask, current_app
from dotenv import load_dotenv
from flask_cors import CORS
from sqlalchemy.engine import Connection, Engine

from .config import load_config
from .db.engine import init_db, make_engine
from .errors import register_error_handlers


def create_app(config=None, engine: Engine | None = None) -> Flask:
    """
    Build the Flask app. The engine is owned by whoever calls this: pass one
    in (tests, scripts) or let it be built from DATABASE_URL; either way the
    process entry point disposes it on shutdown.
    """
    load_dotenv()
    app = Flask(__name__)

    # ---- Config ----
    app.config.update(load_config())
    if config:
        app.config.update(config)
    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    if engine is None:
        engine = make_engine(app.config["DATABASE_URL"])
    app.config["DB_ENGINE"] = engine

    if app.config["AUTO_CREATE_TABLES"]:
        init_db(engine)

    if app.config["SEED_ADMIN"]:
        from .services.seed_admin import ensure_seeded
        ensure_seeded(
            engine,
            app.config["SEED_ADMIN_EMAIL"],
            app.config["SEED_ADMIN_PASSWORD"],
            app.config["SEED_ADMIN_NAME"],
        )

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    register_error_handlers(app)

    # ---- Blueprints ----
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.admin_users import admin_users_bp
    from .routes.projects import projects_bp
    from .routes.tasks import tasks_bp
    from .routes.dashboard import dashboard_bp
    from .routes.health import health_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(admin_users_bp, url_prefix="/api")
    app.register_blueprint(projects_bp, url_prefix="/api")
    app.register_blueprint(tasks_bp, url_prefix="/api")
    app.register_blueprint(dashboard_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/api")

    return app


def get_conn() -> Connection:
    engine = current_app.config["DB_ENGINE"]
    return engine.connect()
