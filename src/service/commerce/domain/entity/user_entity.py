from datetime import datetime
from enum import StrEnum
from typing import Optional

import attrs

from src.platform.exception.exceptions import ForbiddenError
from src.service.commerce.domain.value_object.shipping_address import ShippingAddress


class UserRole(StrEnum):
    FAN = 'fan'
    ARTIST = 'artist'
    ADMIN = 'admin'


@attrs.define
class UserEntity:
    id: int
    email: str = ''
    name: str = ''
    role: UserRole = UserRole.FAN
    is_active: bool = True
    real_name: Optional[str] = None
    phone_number: Optional[str] = None
    postal_code: Optional[str] = None
    prefecture: Optional[str] = None
    city: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def can_redeem(self) -> bool:
        return self.role in (UserRole.ARTIST, UserRole.ADMIN)

    def validate_active(self) -> None:
        if not self.is_active:
            raise ForbiddenError('User is inactive')

    def has_shipping_address(self) -> bool:
        return all(
            (value or '').strip()
            for value in (self.postal_code, self.prefecture, self.city, self.address_line1)
        )

    def shipping_snapshot(self) -> Optional[ShippingAddress]:
        if not self.has_shipping_address():
            return None
        return ShippingAddress(
            name=self.real_name or self.name,
            phone=self.phone_number,
            postal_code=self.postal_code or '',
            prefecture=self.prefecture or '',
            city=self.city or '',
            address_line1=self.address_line1 or '',
            address_line2=self.address_line2,
        )

    def owns_catalog_entry(self, artist_id: Optional[int]) -> bool:
        """Admins act on any catalog entry; artists only on their own"""
        if self.is_admin:
            return True
        return artist_id is not None and self.role == UserRole.ARTIST and artist_id == self.id
