from pathlib import Path
from typing import List, Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Commerce Fulfillment Engine'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Security (bearer tokens are issued by the external identity provider)
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ALGORITHM: str = 'HS256'
    JWT_ISSUER: Optional[str] = None
    JWT_AUDIENCE: Optional[str] = None

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'commerce_fulfillment'
    DATABASE_URL: Optional[str] = None  # Full async URL override (e.g. sqlite+aiosqlite:///...)

    # SQLAlchemy pool
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800
    DB_POOL_PRE_PING: bool = True
    SQLITE_BUSY_TIMEOUT: float = 30.0

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Kvrocks Configuration (Redis protocol, backs the real-time status mirror)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    KVROCKS_KEY_PREFIX: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    KVROCKS_POOL_MAX_CONNECTIONS: int = 50
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 5
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30

    STATUS_MIRROR_TTL_SECONDS: int = 60 * 60 * 24 * 30

    # Stripe
    STRIPE_SECRET_KEY: SecretStr = SecretStr('sk_test_change_me')
    STRIPE_WEBHOOK_SECRET: SecretStr = SecretStr('whsec_change_me')
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300
    PAYMENT_CURRENCY: str = 'jpy'
    PAYMENT_TIMEOUT_SECONDS: float = 10.0

    # Commerce rules
    PLATFORM_FEE_PERCENT: int = 10
    OPEN_SEATING_LABEL: str = '自由席'
    RESERVATION_TTL_MINUTES: int = 30
    RESERVATION_SWEEP_INTERVAL_SECONDS: float = 60.0
    ENABLE_RESERVATION_SWEEPER: bool = True

    # Paths
    LOG_DIR: Path = _PROJECT_ROOT / 'logs'
    ALEMBIC_INI: Path = _PROJECT_ROOT / 'alembic.ini'

    # Observability
    DEPLOY_ENV: str = 'local_dev'
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[str] = None
    OTEL_CONSOLE_EXPORT: bool = False
    OTEL_SAMPLE_RATIO: float = 1.0


settings = Settings()  # type: ignore
