from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class TicketTypeModel(Base):
    __tablename__ = 'ticket_type'
    __table_args__ = (
        CheckConstraint('capacity >= 0', name='ck_ticket_type_capacity_non_negative'),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('event.id'), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # remaining seats
    seating_mode: Mapped[str] = mapped_column(String(20), nullable=False, default='assigned')
    issued_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
