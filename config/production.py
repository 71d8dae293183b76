import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = Config.db_config()

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = Config.AUTO_INIT_DB

INTERN_ALIASES = Config.INTERN_ALIASES
REQUIRED_EXEC_APPROVALS = Config.REQUIRED_EXEC_APPROVALS
MONTHLY_DAY_DIVISOR = Config.MONTHLY_DAY_DIVISOR
SSS_CONTRIBUTION = Config.SSS_CONTRIBUTION
PAGIBIG_CONTRIBUTION = Config.PAGIBIG_CONTRIBUTION
PHILHEALTH_CONTRIBUTION = Config.PHILHEALTH_CONTRIBUTION
