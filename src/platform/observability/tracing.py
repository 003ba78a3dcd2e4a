"""
OpenTelemetry tracing for the commerce API.

Spans come from three places:
- FastAPI auto-instrumentation (one server span per request)
- SQLAlchemy and Redis instrumentation (ledger updates, mirror writes)
- Manual spans opened by use cases (checkout, webhook, redemption, sweeper)

Export is OTLP/gRPC when OTEL_EXPORTER_OTLP_ENDPOINT is configured; without it
spans are created and dropped, so the test app pays no exporter cost.
"""

from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
)
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

from src.platform.config.core_setting import settings


# Long-lived SSE responses would hold one server span open per connected device
EXCLUDED_URLS = ','.join(('health', 'metrics', r'api/status/.*/sse'))


class TracingConfig:
    def __init__(
        self,
        *,
        service_name: str,
        otlp_endpoint: Optional[str] = None,
        enable_console: Optional[bool] = None,
        sample_ratio: Optional[float] = None,
    ) -> None:
        self.service_name = service_name
        self.otlp_endpoint = otlp_endpoint or settings.OTEL_EXPORTER_OTLP_ENDPOINT
        self.enable_console = (
            settings.OTEL_CONSOLE_EXPORT if enable_console is None else enable_console
        )
        self.sample_ratio = settings.OTEL_SAMPLE_RATIO if sample_ratio is None else sample_ratio
        self._provider: Optional[TracerProvider] = None

    def setup(self) -> None:
        """Install the global tracer provider once, at application startup"""
        resource = Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: settings.VERSION,
                DEPLOYMENT_ENVIRONMENT: settings.DEPLOY_ENV,
            }
        )
        # Follow the caller's decision when a parent span arrives with the request
        sampler = ParentBased(root=TraceIdRatioBased(self.sample_ratio))
        self._provider = TracerProvider(resource=resource, sampler=sampler)

        if self.otlp_endpoint:
            self._provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=self.otlp_endpoint))
            )
        if self.enable_console:
            self._provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(self._provider)

    def instrument_fastapi(self, *, app: Any) -> None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)

    def instrument_sqlalchemy(self, *, engine: Any) -> None:
        # AsyncEngine wraps a sync engine; the instrumentor hooks the sync one
        SQLAlchemyInstrumentor().instrument(engine=getattr(engine, 'sync_engine', engine))

    def instrument_redis(self) -> None:
        RedisInstrumentor().instrument()

    def shutdown(self) -> None:
        if self._provider:
            self._provider.shutdown()
