from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class IssuedTicketModel(Base):
    __tablename__ = 'issued_ticket'
    __table_args__ = (
        UniqueConstraint('order_id', 'ordinal', name='uq_issued_ticket_order_ordinal'),
        UniqueConstraint(
            'payment_reference', 'ordinal', name='uq_issued_ticket_payment_reference_ordinal'
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)  # UUID7
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('order.id'), nullable=False, index=True
    )
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('user.id'), nullable=False, index=True
    )
    ticket_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('ticket_type.id'), nullable=False, index=True
    )
    event_id: Mapped[int] = mapped_column(Integer, ForeignKey('event.id'), nullable=False)
    seat_label: Mapped[str] = mapped_column(String(64), nullable=False)
    redemption_token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    used_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
