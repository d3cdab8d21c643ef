"""OpenTelemetry metrics configuration.

Installs a global meter provider that exports over OTLP. Instruments created
through `opentelemetry.metrics.get_meter` before or after this call are
recorded by the configured provider; without it they are no-ops.
"""

import logging
import os
from typing import Optional

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import set_meter_provider
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)

_metrics_configured = False


def configure_metrics(
    service_name: Optional[str] = None,
    deployment_environment: Optional[str] = None,
    domain: Optional[str] = None,
    otlp_endpoint: Optional[str] = None,
    export_interval_millis: int = 60000,
    force_reconfigure: bool = False,
) -> bool:
    """Configure OpenTelemetry metrics with OTLP export.

    Environment variables used when arguments are omitted:
    - APP_NAME, APP_DOMAIN, APP_ENV / ENVIRONMENT
    - OTEL_EXPORTER_OTLP_METRICS_ENDPOINT, OTEL_EXPORTER_OTLP_ENDPOINT

    Args:
        service_name: Service name
        deployment_environment: Environment
        domain: Service namespace
        otlp_endpoint: OTLP collector endpoint (defaults to env or http://localhost:4317)
        export_interval_millis: Metrics export interval in milliseconds
        force_reconfigure: Force reconfiguration even if already configured

    Returns:
        True if metrics were configured, False if already configured
    """
    global _metrics_configured

    if _metrics_configured and not force_reconfigure:
        logger.debug("Metrics already configured, skipping")
        return False

    service_name = service_name or os.getenv("APP_NAME", "unknown-service")
    deployment_environment = (
        deployment_environment
        or os.getenv("APP_ENV")
        or os.getenv("ENVIRONMENT", "development")
    )
    domain = domain or os.getenv("APP_DOMAIN", "default")

    resource = Resource.create({
        "service.name": service_name,
        "service.namespace": domain,
        "deployment.environment": deployment_environment,
    })

    endpoint = (
        otlp_endpoint
        or os.getenv("OTEL_EXPORTER_OTLP_METRICS_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        or "http://localhost:4317"
    )

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint, insecure=True),
        export_interval_millis=export_interval_millis,
    )
    set_meter_provider(MeterProvider(resource=resource, metric_readers=[metric_reader]))

    _metrics_configured = True

    logger.info(
        "Metrics configured for %s, exporting to %s every %dms",
        service_name,
        endpoint,
        export_interval_millis,
    )

    return True
