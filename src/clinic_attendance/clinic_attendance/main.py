from __future__ import annotations

import importlib
import logging
import logging.config
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .billing.controller import register as register_billing

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {"handlers": ["console"], "level": level.upper()},
    })


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.debug(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            lock_wait_timeout=int(getattr(settings, "DB_LOCK_WAIT_TIMEOUT", 10)),
        )

    register_attendance(app, container)
    register_billing(app, container)

    return app
