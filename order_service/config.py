"""Order service configuration (environment)."""

import os

DB_PATH = os.getenv("DB_PATH", "/data/orders.db")
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://localhost:8002")
PRODUCT_SERVICE_TIMEOUT_MS = int(os.getenv("PRODUCT_SERVICE_TIMEOUT_MS", "1000"))
