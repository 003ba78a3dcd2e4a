"""
Status Sync Publisher

Best-effort propagation of committed order/ticket status changes to the
real-time mirror. Runs after commit, never inside the originating
transaction; a failed write is logged and counted, never raised.
"""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Optional

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.commerce_metrics import metrics
from src.service.commerce.app.interface.i_status_mirror import IStatusMirror
from src.service.commerce.domain.value_object.redemption import TokenSubject
from src.service.commerce.domain.value_object.status_document import StatusDocument


class StatusSyncPublisher:
    def __init__(self, *, status_mirror: IStatusMirror) -> None:
        self.status_mirror = status_mirror
        self._tasks: set[asyncio.Task] = set()

    async def publish(
        self,
        *,
        token: Optional[str],
        subject: TokenSubject,
        status: str,
        actor_id: Optional[int] = None,
    ) -> bool:
        """Write one document; returns False instead of raising when the mirror is unavailable"""
        if not token:
            return False

        document = StatusDocument(
            token=token,
            subject=subject,
            status=status,
            updated_at=datetime.now(timezone.utc),
            actor_id=actor_id,
        )
        try:
            await self.status_mirror.write(document=document)
        except Exception as e:
            Logger.base.warning(
                f'⚠️ [MIRROR] Write failed for {subject}={status}: {type(e).__name__}: {e}'
            )
            metrics.record_mirror_write(subject=subject.value, result='failed')
            return False

        metrics.record_mirror_write(subject=subject.value, result='ok')
        return True

    def publish_in_background(
        self,
        *,
        token: Optional[str],
        subject: TokenSubject,
        status: str,
        actor_id: Optional[int] = None,
    ) -> None:
        # Fire and forget; keep a reference so the task is not collected mid-flight
        task = asyncio.create_task(
            self.publish(token=token, subject=subject, status=status, actor_id=actor_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def publish_many_in_background(
        self,
        *,
        tokens: Iterable[str],
        subject: TokenSubject,
        status: str,
        actor_id: Optional[int] = None,
    ) -> None:
        for token in tokens:
            self.publish_in_background(
                token=token, subject=subject, status=status, actor_id=actor_id
            )

    async def drain(self) -> None:
        """Wait for in-flight writes (shutdown and tests)"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
