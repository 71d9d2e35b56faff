import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from .. import __version__
from ..config.settings import Settings


def build_tracer_provider(settings: Settings) -> TracerProvider:
    resource = Resource(attributes={
        "service.name": settings.SERVICE_NAME,
        "service.version": __version__,
        "fusionauth.base_url": settings.FUSIONAUTH_BASE_URL,
    })

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    return provider


def setup_telemetry(settings: Settings):
    trace.set_tracer_provider(build_tracer_provider(settings))
    return trace.get_tracer(settings.SERVICE_NAME)


def setup_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger(settings.SERVICE_NAME)
