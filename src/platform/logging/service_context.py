"""
Service context for log lines.

Every record carries `<service>@<environment>:<instance>` so logs from several
API replicas and the reservation sweeper can be told apart once aggregated.
"""

from functools import lru_cache
import os

from src.platform.config.core_setting import settings


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'commerce-api')

    # Container platforms expose a hostname per replica; fall back to the PID locally
    instance_id = os.getenv('HOSTNAME', '')[:12] or str(os.getpid())

    return f'{service_name}@{settings.DEPLOY_ENV}:{instance_id}'
