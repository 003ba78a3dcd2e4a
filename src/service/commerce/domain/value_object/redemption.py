from datetime import datetime
from enum import StrEnum
from typing import Optional
import uuid

import attrs


class RedemptionMode(StrEnum):
    MERCHANDISE = 'merchandise'
    TICKET = 'ticket'


class TokenSubject(StrEnum):
    ORDER = 'order'
    TICKET = 'ticket'


def new_redemption_token() -> str:
    # uuid4 is drawn from os.urandom, so tokens are not derivable from ids or time
    return str(uuid.uuid4())


def mode_for_subject(subject: TokenSubject) -> RedemptionMode:
    match subject:
        case TokenSubject.ORDER:
            return RedemptionMode.MERCHANDISE
        case TokenSubject.TICKET:
            return RedemptionMode.TICKET


@attrs.frozen
class RedemptionResult:
    """Summary returned to the scanning device"""

    subject: TokenSubject
    subject_id: str
    order_id: str
    status: str
    redeemed_at: datetime
    redeemed_by: int
    title: str
    quantity: int
    seat_label: Optional[str] = None
