import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
DB_CONFIG = Config.db_config()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()

# If enabled, the app applies database/schema.sql on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

INTERN_ALIASES = Config.INTERN_ALIASES
REQUIRED_EXEC_APPROVALS = Config.REQUIRED_EXEC_APPROVALS
MONTHLY_DAY_DIVISOR = Config.MONTHLY_DAY_DIVISOR
SSS_CONTRIBUTION = Config.SSS_CONTRIBUTION
PAGIBIG_CONTRIBUTION = Config.PAGIBIG_CONTRIBUTION
PHILHEALTH_CONTRIBUTION = Config.PHILHEALTH_CONTRIBUTION
