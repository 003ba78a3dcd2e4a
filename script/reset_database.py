#!/usr/bin/env python3
"""
Database Reset Script
Reset the commerce schema and the status mirror

Features:
1. Downgrade to base - drop every table owned by the migrations
2. Upgrade to head - recreate the latest schema
3. Clear status mirror - delete `status:*` keys under KVROCKS_KEY_PREFIX

Notes:
- This script only resets structure, does not seed test data
- To seed test data, run `python script/seed_data.py`
"""

import asyncio

from alembic import command
from alembic.config import Config

from src.platform.config.core_setting import settings
from src.platform.state.kvrocks_client import kvrocks_client


def reset_schema() -> None:
    """Run `alembic downgrade base` then `alembic upgrade head`"""
    print(f'Database URL: {settings.DATABASE_URL_ASYNC.split("@")[-1]}')

    alembic_cfg = Config(str(settings.ALEMBIC_INI))

    print("🗑️ Running 'alembic downgrade base'...")
    command.downgrade(alembic_cfg, 'base')
    print('   ✅ Tables dropped')

    print("🏗️ Running 'alembic upgrade head'...")
    command.upgrade(alembic_cfg, 'head')
    print('   ✅ Database migrations completed')


async def clear_status_mirror() -> None:
    """Delete mirrored status documents; other keys in the DB are left alone"""
    try:
        print('🗑️  Clearing status mirror...')
        client = await kvrocks_client.initialize()

        deleted = 0
        async for key in client.scan_iter(match=f'{settings.KVROCKS_KEY_PREFIX}status:*'):
            deleted += await client.delete(key)

        print(f'✅ Status mirror cleared ({deleted} keys)')

    except Exception as e:
        print(f'⚠️  Failed to clear status mirror (non-critical): {e}')
        print('    Kvrocks may not be running, continuing anyway...')

    finally:
        await kvrocks_client.disconnect()


def main():
    print('🔄 Starting database reset...')
    print('=' * 50)

    try:
        # env.py drives its own event loop, so it runs outside asyncio.run
        reset_schema()
        print()

        asyncio.run(clear_status_mirror())
        print()

        print('=' * 50)
        print('✅ Database reset completed!')
        print('💡 To seed test data, run: python script/seed_data.py')

    except Exception as e:
        print(f'❌ Reset failed: {e}')
        exit(1)


if __name__ == '__main__':
    main()
