"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.commerce.app.command import (
    checkout_use_case,
    handle_payment_webhook_use_case,
    redeem_use_case,
    update_order_status_use_case,
)
from src.service.commerce.app.query import (
    get_order_use_case,
    list_my_orders_use_case,
    list_my_tickets_use_case,
    redemption_status_use_case,
)
from src.service.commerce.driving_adapter.http_controller.auth import role_auth


WIRE_MODULES: list[ModuleType] = [
    checkout_use_case,
    handle_payment_webhook_use_case,
    redeem_use_case,
    update_order_status_use_case,
    get_order_use_case,
    list_my_orders_use_case,
    list_my_tickets_use_case,
    redemption_status_use_case,
    role_auth,
]
