from dataclasses import dataclass

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Meter, NoOpMeterProvider
from opentelemetry.sdk.metrics import MeterProvider as SdkMeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from greenrun.settings import Settings


@dataclass
class MetricsConfig:
    service_name: str = "greenrun-backend"
    service_version: str = "0.1.0"
    otlp_endpoint: str | None = None
    export_interval_millis: int = 10000


class BaseMetrics:
    def __init__(self, settings: Settings, meter_name: str | None = None):
        """Initialize base metrics with its own meter.

        Args:
            settings: Application settings (service identity and OTLP endpoint)
            meter_name: Optional name for the meter. Defaults to class name.
        """
        config = MetricsConfig(
            service_name=settings.SERVICE_NAME,
            service_version=settings.SERVICE_VERSION,
            otlp_endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
        )

        meter_name = meter_name or self.__class__.__name__
        self._meter = self._create_meter(settings, config, meter_name)
        self._create_instruments()

    def _create_meter(self, settings: Settings, config: MetricsConfig, meter_name: str) -> Meter:
        # No OTLP endpoint (or under test): NoOp meter, no export threads or network
        if settings.TESTING or not config.otlp_endpoint:
            return NoOpMeterProvider().get_meter(meter_name)

        resource = Resource.create(
            {"service.name": config.service_name, "service.version": config.service_version, "meter.name": meter_name}
        )

        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=config.otlp_endpoint),
            export_interval_millis=config.export_interval_millis,
        )

        meter_provider = SdkMeterProvider(resource=resource, metric_readers=[reader])
        return meter_provider.get_meter(meter_name)

    def _create_instruments(self) -> None:
        """Create metric instruments. Override in subclasses."""
        pass
