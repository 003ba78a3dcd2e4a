from typing import Optional
import uuid

from sqlalchemy import ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class OrderItemModel(Base):
    __tablename__ = 'order_item'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey('order.id'), nullable=False, index=True
    )
    # Catalog rows may be deleted later; the snapshot columns keep the receipt intact
    product_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey('product.id', ondelete='SET NULL'), nullable=True, index=True
    )
    ticket_type_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey('ticket_type.id', ondelete='SET NULL'), nullable=True, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
