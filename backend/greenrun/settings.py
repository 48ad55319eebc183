import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """Application settings loaded from TOML configuration files.

    All config is read from TOML; no environment variables, no .env files.

    Load order (each layer overrides the previous):
        1. config_path    : base settings (committed to git)
        2. secrets_path   : sensitive overrides (gitignored, mounted from K8s Secret in prod)
        3. override_path  : per-process overrides (e.g. the executor running on a compute host)

    Usage:
        Settings()                                                       # config.toml + secrets
        Settings(config_path="config.test.toml")                         # test config (has own secrets)
        Settings(override_path="config.executor.toml")                   # base + secrets + executor
    """

    model_config = ConfigDict(extra="forbid")

    def __init__(
        self,
        config_path: str = "config.toml",
        override_path: str | None = None,
        secrets_path: str = "secrets.toml",
    ) -> None:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        if Path(secrets_path).is_file():
            with open(secrets_path, "rb") as f:
                data |= tomllib.load(f)
        if override_path:
            with open(override_path, "rb") as f:
                data |= tomllib.load(f)
        super().__init__(**data)

    PROJECT_NAME: str = "greenrun"
    API_V1_STR: str = "/api/v1"
    TESTING: bool = False

    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000
    CORS_ORIGINS: list[str] = Field(default_factory=list)

    # Object storage (any S3-compatible endpoint)
    STORAGE_BUCKET: str = "greenrun-notebooks"
    STORAGE_REGION: str = "us-east-1"
    STORAGE_ENDPOINT_URL: str | None = None
    STORAGE_ACCESS_KEY_ID: str | None = None
    STORAGE_SECRET_ACCESS_KEY: str | None = None

    # Compute hosts are pods in this namespace
    KUBERNETES_CONFIG_PATH: str = "~/.kube/config"
    K8S_NAMESPACE: str = "greenrun"
    K8S_EXECUTOR_IMAGE: str = "greenrun/executor:latest"
    K8S_SERVICE_ACCOUNT: str | None = None
    K8S_POD_CPU_REQUEST: str = "500m"
    K8S_POD_CPU_LIMIT: str = "2000m"
    K8S_POD_MEMORY_REQUEST: str = "1Gi"
    K8S_POD_MEMORY_LIMIT: str = "4Gi"
    K8S_POD_PRIORITY_CLASS_NAME: str | None = None

    # Executor (runs on the compute host)
    EXECUTOR_KERNEL_NAME: str = "python3"
    EXECUTOR_CELL_TIMEOUT: int = 1800  # seconds per cell
    EXECUTOR_WORKDIR: str = "/home/executor/notebooks"
    LOG_FLUSH_INTERVAL: float = Field(default=2.0, gt=0)
    SHUTDOWN_GRACE_SECONDS: float = Field(default=5.0, ge=0)
    HOST_INSTANCE_ENV: str = "NOTEBOOK_INSTANCE_NAME"

    # Status polling / streaming
    STATUS_POLL_INTERVAL: float = 3.0
    STATUS_WAIT_TIMEOUT: float = 3600.0
    SSE_POLL_INTERVAL: float = 3.0
    HOST_READY_POLL_INTERVAL: float = 15.0
    HOST_READY_MAX_ATTEMPTS: int = 40

    # Carbon intensity (region -> grid zone, zone -> API token)
    CARBON_API_BASE_URL: str = "https://api.electricitymap.org/v3"
    CARBON_ZONES: dict[str, str] = Field(default_factory=dict)
    CARBON_API_TOKENS: dict[str, str] = Field(default_factory=dict)
    CARBON_CACHE_TTL: int = 3600  # seconds
    CARBON_REQUEST_TIMEOUT: float = 10.0

    # Redis Configuration
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None
    REDIS_SSL: bool = False
    REDIS_MAX_CONNECTIONS: int = 50

    # OpenTelemetry Configuration
    SERVICE_NAME: str = "greenrun-backend"
    SERVICE_VERSION: str = "0.1.0"
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
