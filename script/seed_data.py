#!/usr/bin/env python3
"""
Database Seed Script
Populate test data into the database

Features:
1. Create Users - 1 artist + 1 fan (with mail address) + 1 admin
2. Create Event - 1 event with an assigned-seat and an open-seating ticket type
3. Create Products - merchandise with and without a per-buyer limit
4. Print bearer tokens for each seeded user

Notes:
- Run `python script/reset_database.py` first for an empty schema
- Tokens are signed with SECRET_KEY, the same key the API verifies against
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select

from src.platform.database.orm_db_setting import engine_manager
from src.service.commerce.domain.entity.user_entity import UserEntity, UserRole
from src.service.commerce.driven_adapter.model import (
    EventModel,
    ProductModel,
    TicketTypeModel,
    UserModel,
)
from src.service.commerce.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


@dataclass
class UserConfig:
    """User seed configuration"""

    email: str
    name: str
    role: UserRole
    address: dict[str, Any] = field(default_factory=dict)


# Test users to create
TEST_USERS = [
    UserConfig(email='artist@t.com', name='init artist', role=UserRole.ARTIST),
    UserConfig(
        email='fan@t.com',
        name='init fan',
        role=UserRole.FAN,
        address={
            'real_name': '山田 太郎',
            'phone_number': '090-0000-0000',
            'postal_code': '150-0001',
            'prefecture': '東京都',
            'city': '渋谷区',
            'address_line1': '神宮前1-1-1',
        },
    ),
    UserConfig(email='admin@t.com', name='init admin', role=UserRole.ADMIN),
]


async def create_users(session) -> dict[str, UserModel]:
    """Create initial test users keyed by email"""
    print(f'👥 Creating {len(TEST_USERS)} users...')

    created: dict[str, UserModel] = {}
    for config in TEST_USERS:
        user = UserModel(
            email=config.email, name=config.name, role=config.role, is_active=True, **config.address
        )
        session.add(user)
        await session.flush()
        created[config.email] = user
        print(f'   ✅ Created {config.role}: ID={user.id}, Email={user.email}')

    return created


async def create_catalog(session, artist_id: int) -> None:
    """Create initial event, ticket types and merchandise"""
    print('🎫 Creating initial catalog...')

    event = EventModel(
        artist_id=artist_id,
        name='Spring Live 2026',
        venue_name='Zepp Haneda',
        event_date=datetime.now(timezone.utc) + timedelta(days=30),
    )
    session.add(event)
    await session.flush()
    print(f'   ✅ Created event: ID={event.id}, Name={event.name}')

    ticket_types = [
        TicketTypeModel(
            event_id=event.id, name='S席', price=8000, capacity=100, seating_mode='assigned'
        ),
        TicketTypeModel(
            event_id=event.id, name='立見', price=5000, capacity=200, seating_mode='open'
        ),
    ]
    session.add_all(ticket_types)

    products = [
        ProductModel(artist_id=artist_id, name='Tour T-shirt', price=3500, stock=50),
        ProductModel(
            artist_id=artist_id, name='Signed Photo', price=2000, stock=10, limit_per_user=1
        ),
    ]
    session.add_all(products)
    await session.flush()

    for ticket_type in ticket_types:
        print(f'   ✅ Created ticket type: ID={ticket_type.id}, Name={ticket_type.name}')
    for product in products:
        print(f'   ✅ Created product: ID={product.id}, Name={product.name}')


async def verify_data(session) -> None:
    """Verify seeded data"""
    print('🔍 Verifying seeded data...')

    for model in (UserModel, EventModel, TicketTypeModel, ProductModel):
        count = await session.scalar(select(func.count()).select_from(model))
        print(f'   {model.__tablename__} count: {count}')

    print('   ✅ Data verification completed!')


async def _seed_data() -> dict[str, UserModel]:
    """Seed users and catalog in a single transaction"""
    session_maker = engine_manager.get_session_maker()
    async with session_maker() as session:
        try:
            users = await create_users(session)
            print()

            await create_catalog(session, artist_id=users['artist@t.com'].id)
            print()

            await session.commit()
            print('✅ All data committed successfully!')

        except Exception as e:
            await session.rollback()
            print(f'❌ Rolling back: {e}')
            raise

        await verify_data(session)
        return users


async def main():
    print('🌱 Starting data seeding...')
    print('=' * 50)

    try:
        users = await _seed_data()

        print()
        print('=' * 50)
        print('🌱 Data seeding completed!')
        print('🔑 Bearer tokens:')
        jwt_auth = JwtAuth()
        for email, user in users.items():
            token = jwt_auth.create_jwt_token(UserEntity(id=user.id, role=UserRole(user.role)))
            print(f'   {email}: {token}')

    except Exception as e:
        print(f'❌ Seeding failed: {e}')
        exit(1)

    finally:
        await engine_manager.dispose()


if __name__ == '__main__':
    asyncio.run(main())
