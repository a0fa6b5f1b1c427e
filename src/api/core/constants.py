API_VERSION_HEADER = "X-Storyledger-Version"

# Identity forwarded by the session gateway
ACCOUNT_ID_HEADER = "X-Account-Id"
REQUEST_ID_HEADER = "X-Request-ID"

# Internal admin routes
ADMIN_KEY_HEADER = "X-Admin-Key"

# Payment provider webhook headers
WEBHOOK_SIGNATURE_HEADER = "Revolut-Signature"
WEBHOOK_TIMESTAMP_HEADER = "Revolut-Request-Timestamp"

# Pagination
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100
PAYMENT_HISTORY_LIMIT = 20
