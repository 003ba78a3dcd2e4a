from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.service.commerce.domain.value_object.redemption import RedemptionMode, RedemptionResult


class RedemptionRequest(BaseModel):
    token: str = Field(min_length=1, max_length=64)
    mode: RedemptionMode

    class Config:
        json_schema_extra = {
            'example': {'token': '8c0c3f8e-6f2b-4a57-9d1e-0d4f3c1e2a7b', 'mode': 'merchandise'}
        }


class RedemptionResponse(BaseModel):
    subject: str
    subject_id: str
    order_id: str
    status: str
    redeemed_at: datetime
    redeemed_by: int
    title: str
    quantity: int
    seat_label: Optional[str] = None

    @classmethod
    def from_result(cls, result: RedemptionResult) -> 'RedemptionResponse':
        return cls(
            subject=result.subject.value,
            subject_id=result.subject_id,
            order_id=result.order_id,
            status=result.status,
            redeemed_at=result.redeemed_at,
            redeemed_by=result.redeemed_by,
            title=result.title,
            quantity=result.quantity,
            seat_label=result.seat_label,
        )


class StatusDocumentResponse(BaseModel):
    token: str
    subject: str
    status: str
    updated_at: Optional[datetime] = None
    actor_id: Optional[int] = None
