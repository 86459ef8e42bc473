import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "clinic_test_db"),
}

DB_LOCK_WAIT_TIMEOUT = int(os.getenv("DB_LOCK_WAIT_TIMEOUT", "3"))

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
