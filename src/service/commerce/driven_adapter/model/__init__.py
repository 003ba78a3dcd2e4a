"""ORM models; importing this package registers every table on Base.metadata"""

from src.service.commerce.driven_adapter.model.event_model import EventModel
from src.service.commerce.driven_adapter.model.issued_ticket_model import IssuedTicketModel
from src.service.commerce.driven_adapter.model.order_item_model import OrderItemModel
from src.service.commerce.driven_adapter.model.order_model import OrderModel
from src.service.commerce.driven_adapter.model.product_model import ProductModel
from src.service.commerce.driven_adapter.model.ticket_type_model import TicketTypeModel
from src.service.commerce.driven_adapter.model.user_model import UserModel

__all__ = [
    'EventModel',
    'IssuedTicketModel',
    'OrderItemModel',
    'OrderModel',
    'ProductModel',
    'TicketTypeModel',
    'UserModel',
]
