from __future__ import annotations

import os


def _aliases(value: str | None) -> frozenset | None:
    # None keeps the built-in intern list
    if not value:
        return None
    return frozenset(a.strip().lower() for a in value.split(",") if a.strip())


class Config:
    """Settings shared by every environment; each reads an env var with a default."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "payflow-dev-secret"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "payflow_db")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))

    # Payroll
    INTERN_ALIASES = _aliases(os.environ.get("INTERN_ALIASES"))
    REQUIRED_EXEC_APPROVALS = int(os.environ.get("REQUIRED_EXEC_APPROVALS", "2"))
    MONTHLY_DAY_DIVISOR = int(os.environ.get("MONTHLY_DAY_DIVISOR", "22"))
    # Pesos; converted to centavos at startup. Blank keeps the built-in amount.
    SSS_CONTRIBUTION = os.environ.get("SSS_CONTRIBUTION", "")
    PAGIBIG_CONTRIBUTION = os.environ.get("PAGIBIG_CONTRIBUTION", "")
    PHILHEALTH_CONTRIBUTION = os.environ.get("PHILHEALTH_CONTRIBUTION", "")

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
