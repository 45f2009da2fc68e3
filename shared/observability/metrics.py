from prometheus_client import Counter, Histogram

# Business Metrics
market_checkout_total = Counter(
    "market_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'out_of_stock', 'not_found', 'invalid', 'failed'
)

market_checkout_duration_seconds = Histogram(
    "market_checkout_duration_seconds",
    "Checkout duration in seconds"
)

market_stock_reservations_total = Counter(
    "market_stock_reservations_total",
    "Inventory ledger reservation attempts",
    ["result"] # Labels: 'reserved', 'out_of_stock', 'not_found'
)

market_receipt_message_failures_total = Counter(
    "market_receipt_message_failures_total",
    "Committed orders whose receipt chat messages could not be posted"
)

market_order_transitions_total = Counter(
    "market_order_transitions_total",
    "Order lifecycle transitions",
    ["to_status"]
)
