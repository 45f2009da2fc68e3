from .setup import setup_observability, configure_logging
from .metrics import (
    market_checkout_total,
    market_checkout_duration_seconds,
    market_stock_reservations_total,
    market_receipt_message_failures_total,
    market_order_transitions_total
)
