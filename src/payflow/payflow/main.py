from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.money import to_centavos
from .container import build_container
from .core.constants import (
    DEFAULT_INTERN_ALIASES,
    DEFAULT_MONTHLY_DAY_DIVISOR,
    DEFAULT_PAGIBIG_CONTRIBUTION,
    DEFAULT_PHILHEALTH_CONTRIBUTION,
    DEFAULT_REQUIRED_EXEC_APPROVALS,
    DEFAULT_SSS_CONTRIBUTION,
)
from .database.bootstrap import apply_schema, list_tables
from .payroll.calculator.model import StatutoryAmounts
from .payroll.controller import register as register_payroll
from .requests.controller import register as register_requests

logger = logging.getLogger(__name__)


def _statutory(settings) -> StatutoryAmounts:
    def amount(name: str, default: int) -> int:
        value = getattr(settings, name, None)
        return to_centavos(value) if value not in (None, "") else default

    return StatutoryAmounts(
        sss=amount("SSS_CONTRIBUTION", DEFAULT_SSS_CONTRIBUTION),
        pagibig=amount("PAGIBIG_CONTRIBUTION", DEFAULT_PAGIBIG_CONTRIBUTION),
        philhealth=amount("PHILHEALTH_CONTRIBUTION", DEFAULT_PHILHEALTH_CONTRIBUTION),
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        intern_aliases=getattr(settings, "INTERN_ALIASES", None) or DEFAULT_INTERN_ALIASES,
        required_exec_approvals=int(getattr(settings, "REQUIRED_EXEC_APPROVALS", DEFAULT_REQUIRED_EXEC_APPROVALS)),
        monthly_day_divisor=int(getattr(settings, "MONTHLY_DAY_DIVISOR", DEFAULT_MONTHLY_DAY_DIVISOR)),
        statutory=_statutory(settings),
    )
    app.extensions["payflow"] = container

    register_attendance(app, container)
    register_payroll(app, container)
    register_requests(app, container)

    return app
