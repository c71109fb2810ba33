from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings

import os

# Load .env for local/dev environments without overriding real environment values
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: str = Field(default="*", description="CORS allowed origins, comma separated")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Clustering Service Configuration
    clustering_api_endpoint: str = Field(default="", description="Base URL of the clustering service")
    clustering_timeout_seconds: float = Field(default=10.0, description="Timeout for metadata/label calls")
    prepare_timeout_seconds: float = Field(default=60.0, description="Timeout for file preparation uploads")
    mock_clustering: bool = Field(default=True, description="Serve mocked clustering responses")
    mock_delay_seconds: float = Field(default=1.0, description="Simulated processing delay for mocked runs")

    # Sector Map Defaults
    neighbor_count: int = Field(default=6, description="Nearest neighbours per Voronoi cell")
    tessellation_padding: float = Field(default=1.0, description="Bounding box margin for cells")

    @property
    def origins(self) -> list:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
