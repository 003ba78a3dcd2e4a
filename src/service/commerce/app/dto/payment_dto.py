from typing import Optional

import attrs


@attrs.frozen
class PaymentIntentHandle:
    intent_id: str
    client_secret: str


@attrs.frozen
class PaymentNotification:
    """Authenticated processor notification, reduced to the fields the handler acts on"""

    event_id: str
    event_type: str
    intent_id: Optional[str]
    metadata: dict[str, str] = attrs.field(factory=dict)
