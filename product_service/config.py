"""Product service configuration (environment)."""

import os


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


DB_PATH = os.getenv("DB_PATH", "/data/products.db")

# Run the RabbitMQ decrement consumer inside the HTTP process
CONSUME_EVENTS = _flag("CONSUME_EVENTS")

# "none" accepts any price/quantity on create; "strict" rejects negatives
PRODUCT_VALIDATION = os.getenv("PRODUCT_VALIDATION", "none").lower()

# Skip decrement events whose event_id was already applied
RECONCILER_DEDUPE = _flag("RECONCILER_DEDUPE")

# Hand a failed quantity write back to the broker for redelivery
RECONCILER_REQUEUE_ON_FAILURE = _flag("RECONCILER_REQUEUE_ON_FAILURE")
