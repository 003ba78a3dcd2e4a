# API Route Constants

# Base API
API_BASE = '/api'

# Checkout routes
CHECKOUT_BASE = f'{API_BASE}/checkout'
CHECKOUT_CREATE = CHECKOUT_BASE

# Payment routes
PAYMENT_BASE = f'{API_BASE}/payment'
PAYMENT_WEBHOOK = f'{PAYMENT_BASE}/webhook'

# Redemption routes
REDEMPTION_BASE = f'{API_BASE}/redemption'
REDEMPTION_REDEEM = REDEMPTION_BASE

# Order routes
ORDER_BASE = f'{API_BASE}/order'
ORDER_MY_ORDERS = f'{ORDER_BASE}/my'
ORDER_GET = f'{ORDER_BASE}/{{order_id}}'
ORDER_CANCEL = f'{ORDER_BASE}/{{order_id}}/cancel'
ORDER_TRANSITION = f'{ORDER_BASE}/{{order_id}}/transition'

# Ticket routes
TICKET_BASE = f'{API_BASE}/ticket'
TICKET_MY_TICKETS = f'{TICKET_BASE}/my'

# Status routes
STATUS_BASE = f'{API_BASE}/status'
STATUS_GET = f'{STATUS_BASE}/{{token}}'
STATUS_SSE = f'{STATUS_BASE}/{{token}}/sse'

# System routes
HEALTH = '/health'
METRICS = '/metrics'
