import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "product_management_system"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Production runs scripts/sweep_expired_monitors.py from an external scheduler by default
ENABLE_MONITOR_SWEEPER = bool(int(os.getenv("ENABLE_MONITOR_SWEEPER", "0")))
MONITOR_SWEEP_INTERVAL_SECONDS = int(os.getenv("MONITOR_SWEEP_INTERVAL_SECONDS", "3600"))
