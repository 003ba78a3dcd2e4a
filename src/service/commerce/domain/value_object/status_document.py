from datetime import datetime
from typing import Any, Optional

import attrs

from src.service.commerce.domain.value_object.redemption import TokenSubject


@attrs.frozen
class StatusDocument:
    """Non-authoritative copy of an order/ticket status, keyed by redemption token"""

    token: str
    subject: TokenSubject
    status: str
    updated_at: datetime
    actor_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'token': self.token,
            'subject': self.subject.value,
            'status': self.status,
            'updated_at': self.updated_at.isoformat(),
            'actor_id': self.actor_id,
        }
