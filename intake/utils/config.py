"""Configuration management for the claim intake wizard."""

import os
from dataclasses import dataclass, field
from typing import List

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

DEFAULT_CONFIG_PATH = os.getenv("INTAKE_CONFIG", "config.yaml")
UPLOAD_MODES = ("concurrent", "sequential")


@dataclass
class ApiConfig:
    """Claims backend connection settings."""
    base_url: str
    timeout: float
    ping_timeout: float
    rpa_path: str


@dataclass
class ConnectivityConfig:
    """Backend liveness polling settings."""
    poll_interval: float


@dataclass
class UploadConfig:
    """File staging and upload settings."""
    mode: str
    max_workers: int
    min_images: int
    max_images: int
    allowed_image_types: List[str] = field(default_factory=list)
    allowed_document_types: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    format: str
    file: str


@dataclass
class SandboxConfig:
    """Local sandbox backend settings."""
    host: str
    port: int


@dataclass
class Config:
    """Main configuration class."""
    api: ApiConfig
    connectivity: ConnectivityConfig
    upload: UploadConfig
    logging: LoggingConfig
    sandbox: SandboxConfig

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - CLAIMS_API_BASE
        - CLAIMS_API_TIMEOUT
        - PING_INTERVAL_SECONDS
        - UPLOAD_MODE
        - LOG_LEVEL

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If the file is missing or a value is invalid
        """
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError.missing(config_path, e) from e

        try:
            api_config = ApiConfig(
                base_url=os.getenv("CLAIMS_API_BASE", config_data["api"]["base_url"]).rstrip("/"),
                timeout=float(os.getenv("CLAIMS_API_TIMEOUT", config_data["api"]["timeout"])),
                ping_timeout=float(config_data["api"].get("ping_timeout", 5)),
                rpa_path=config_data["api"].get("rpa_path", "/claims/{claim_id}/rpa")
            )

            connectivity_config = ConnectivityConfig(
                poll_interval=float(
                    os.getenv("PING_INTERVAL_SECONDS", config_data["connectivity"]["poll_interval"])
                )
            )

            upload_data = config_data["upload"]
            upload_config = UploadConfig(
                mode=os.getenv("UPLOAD_MODE", upload_data["mode"]).lower(),
                max_workers=int(upload_data.get("max_workers", 4)),
                min_images=int(upload_data.get("min_images", 1)),
                max_images=int(upload_data.get("max_images", 5)),
                allowed_image_types=list(upload_data.get("allowed_image_types", [])),
                allowed_document_types=list(upload_data.get("allowed_document_types", []))
            )

            logging_config = LoggingConfig(
                level=os.getenv("LOG_LEVEL", config_data["logging"]["level"]),
                format=config_data["logging"]["format"],
                file=config_data["logging"].get("file", "")
            )

            sandbox_data = config_data.get("sandbox", {}) or {}
            sandbox_config = SandboxConfig(
                host=sandbox_data.get("host", "127.0.0.1"),
                port=int(sandbox_data.get("port", 8000))
            )
        except KeyError as e:
            raise ConfigurationError.invalid(str(e.args[0]), e) from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError.invalid(str(e), e) from e

        if upload_config.mode not in UPLOAD_MODES:
            raise ConfigurationError.invalid("upload.mode")
        if upload_config.min_images > upload_config.max_images:
            raise ConfigurationError.invalid("upload.min_images")

        return cls(
            api=api_config,
            connectivity=connectivity_config,
            upload=upload_config,
            logging=logging_config,
            sandbox=sandbox_config,
        )
