from typing import Any, Optional

import attrs


@attrs.frozen
class ShippingAddress:
    """Address snapshot copied onto an order at purchase time; never follows profile edits"""

    name: str
    phone: Optional[str]
    postal_code: str
    prefecture: str
    city: str
    address_line1: str
    address_line2: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return attrs.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ShippingAddress':
        return cls(
            name=data.get('name') or '',
            phone=data.get('phone'),
            postal_code=data.get('postal_code') or '',
            prefecture=data.get('prefecture') or '',
            city=data.get('city') or '',
            address_line1=data.get('address_line1') or '',
            address_line2=data.get('address_line2'),
        )
