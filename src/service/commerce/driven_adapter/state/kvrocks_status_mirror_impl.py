"""
Kvrocks Status Mirror

Document per redemption token plus a same-named pub/sub channel:
- <prefix>status:<token>  (string key, JSON document, TTL)
- <prefix>status:<token>  (channel, same JSON for live subscribers)
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

import anyio
import orjson
from redis.asyncio import Redis as AsyncRedis
from redis.asyncio.client import PubSub

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.commerce.app.interface.i_status_mirror import IStatusMirror
from src.service.commerce.domain.value_object.status_document import StatusDocument


class KvrocksStatusMirrorImpl(IStatusMirror):
    def __init__(
        self,
        *,
        redis_client: AsyncRedis,
        key_prefix: str = settings.KVROCKS_KEY_PREFIX,
        ttl_seconds: int = settings.STATUS_MIRROR_TTL_SECONDS,
    ) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds

    def _key(self, *, token: str) -> str:
        return f'{self._key_prefix}status:{token}'

    @Logger.io
    async def write(self, *, document: StatusDocument) -> None:
        key = self._key(token=document.token)
        message = orjson.dumps(document.to_dict())

        async with self._redis.pipeline(transaction=False) as pipe:
            pipe.set(key, message, ex=self._ttl_seconds)
            pipe.publish(key, message)
            _, subscribers = await pipe.execute()

        Logger.base.info(
            f'📡 [MIRROR] {document.subject}={document.status} written, subs={subscribers}'
        )

    @Logger.io
    async def read(self, *, token: str) -> Optional[dict[str, Any]]:
        raw = await self._redis.get(self._key(token=token))
        if raw is None:
            return None
        return orjson.loads(raw)

    @asynccontextmanager
    async def subscribe(
        self, *, token: str
    ) -> AsyncIterator[AsyncGenerator[dict[str, Any], None]]:
        channel = self._key(token=token)
        # Dedicated client with no timeout for pub/sub
        pubsub_client = await kvrocks_client.create_pubsub_client()
        pubsub = pubsub_client.pubsub()

        try:
            await pubsub.subscribe(channel)
            await self._wait_until_subscribed(pubsub)
            Logger.base.info('📡 [MIRROR] Subscribed to status channel')
            yield self._documents(pubsub)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            await pubsub_client.aclose()
            Logger.base.info('📡 [MIRROR] Unsubscribed from status channel')

    @staticmethod
    async def _wait_until_subscribed(pubsub: PubSub) -> None:
        # PUBLISHes processed before the server's ack would never reach us
        timeout = settings.KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT
        with anyio.fail_after(timeout):
            while True:
                message = await pubsub.get_message(timeout=timeout)
                if message is not None and message['type'] == 'subscribe':
                    return

    @staticmethod
    async def _documents(pubsub: PubSub) -> AsyncGenerator[dict[str, Any], None]:
        async for message in pubsub.listen():
            if message['type'] != 'message':
                continue
            data = message['data']
            try:
                yield orjson.loads(data if isinstance(data, bytes) else data.encode())
            except orjson.JSONDecodeError as e:
                Logger.base.error(f'❌ [MIRROR] Failed to decode status message: {e}')
                continue
