from .config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = Config.db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

INTERN_ALIASES = Config.INTERN_ALIASES
REQUIRED_EXEC_APPROVALS = 2
MONTHLY_DAY_DIVISOR = 22
SSS_CONTRIBUTION = ""
PAGIBIG_CONTRIBUTION = ""
PHILHEALTH_CONTRIBUTION = ""
