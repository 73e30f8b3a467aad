# src/finkube/core/config.py

import logging
import os

from dotenv import load_dotenv

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

SUPPORTED_CLOUD_PROVIDERS = ("", "ack", "default")


def _env_bool(key: str, default: str = "True") -> bool:
    return os.getenv(key, default).lower() in ("true", "1", "t", "y", "yes")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    def __init__(self):
        # -- Query backend credentials ---
        self.QUERY_BACKEND_BEARER_TOKEN = self._get_secret("QUERY_BACKEND_BEARER_TOKEN")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (mounted secret volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/finkube/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # Cluster identity is resolved at access time so that the agent can be
    # configured after import (and tests can monkeypatch the environment).
    @property
    def CLUSTER_NAME(self) -> str:
        return os.getenv("CLUSTER_NAME", "")

    @property
    def CLUSTER_ID(self) -> str:
        return os.getenv("CLUSTER_ID", "")

    @property
    def CLOUD_PROVIDER(self) -> str:
        return os.getenv("CLOUD_PROVIDER", "").lower()

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Pricing variables ---
    CPUCORE_RAMGB_PRICE_RATIO = float(os.getenv("CPUCORE_RAMGB_PRICE_RATIO", "3.0"))
    CUSTOM_CPU_CORE_HOUR_PRICE = float(os.getenv("CUSTOM_CPU_CORE_HOUR_PRICE", "0.08"))
    CUSTOM_RAM_GB_HOUR_PRICE = float(os.getenv("CUSTOM_RAM_GB_HOUR_PRICE", "0.02"))
    # Padding added to the reported node capacity to approximate system overhead
    NODE_CPU_DEVIATION = float(os.getenv("NODE_CPU_DEVIATION", "0"))
    NODE_RAM_DEVIATION = float(os.getenv("NODE_RAM_DEVIATION", "0"))

    ACK_INSTANCE_SPEC_URL = os.getenv(
        "ACK_INSTANCE_SPEC_URL",
        "https://query.aliyun.com/rest/sell.ecs.allInstanceTypes?domain=aliyun&saleStrategy=PostPaid",
    )
    ACK_INSTANCE_PRICE_URL = os.getenv(
        "ACK_INSTANCE_PRICE_URL",
        "https://buy-api.aliyun.com/price/getLightWeightPrice2.json?tenant=TenantCalculator",
    )

    # --- Query backend variables ---
    QUERY_BACKEND_ENDPOINT = os.getenv("QUERY_BACKEND_ENDPOINT", "http://localhost:9090")
    QUERY_BACKEND_TENANT = os.getenv("QUERY_BACKEND_TENANT", "")
    QUERY_BACKEND_VERIFY_CERTS = _env_bool("QUERY_BACKEND_VERIFY_CERTS")

    # --- Metrics variables ---
    SCRAPE_INTERVAL_SECONDS = int(os.getenv("SCRAPE_INTERVAL_SECONDS", "15"))
    METRICS_SAMPLE_PERIOD_SECONDS = int(os.getenv("METRICS_SAMPLE_PERIOD_SECONDS", "15"))
    AGENT_METRICS_PORT = int(os.getenv("AGENT_METRICS_PORT", "8080"))

    # --- HTTP variables ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "5"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "30"))
    USER_AGENT = os.getenv("USER_AGENT", "finkube/0.3")

    # --- API variables ---
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    def validate_instance(self):
        if self.CPUCORE_RAMGB_PRICE_RATIO <= 0:
            raise ValueError("CPUCORE_RAMGB_PRICE_RATIO must be a positive number.")
        if self.CUSTOM_CPU_CORE_HOUR_PRICE < 0 or self.CUSTOM_RAM_GB_HOUR_PRICE < 0:
            raise ValueError("CUSTOM_CPU_CORE_HOUR_PRICE and CUSTOM_RAM_GB_HOUR_PRICE must not be negative.")
        if self.SCRAPE_INTERVAL_SECONDS <= 0:
            raise ValueError("SCRAPE_INTERVAL_SECONDS must be a positive integer.")
        if self.METRICS_SAMPLE_PERIOD_SECONDS <= 0:
            raise ValueError("METRICS_SAMPLE_PERIOD_SECONDS must be a positive integer.")
        if self.CLOUD_PROVIDER not in SUPPORTED_CLOUD_PROVIDERS:
            logging.warning(f"CLOUD_PROVIDER '{self.CLOUD_PROVIDER}' is not supported; the default pricing is used.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
