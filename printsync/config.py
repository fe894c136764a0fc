"""
Configuration module for the Printify sync service
Contains logger setup and environment variables
"""

import os
import logging
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from printsync.errors import ConfigError

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(
    name: str = __name__, log_file: Optional[str] = "printsync.log"
) -> logging.Logger:
    """
    Set up and return a logger with a console handler and an optional file handler

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file, or None/empty to log to the console only

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


# Create the main application logger
LOG_FILE = os.getenv("LOG_FILE", "printsync.log")
logger = setup_logger("printsync", LOG_FILE)

# -------------------------
# Environment Variables
# -------------------------
APP_SECRET = os.getenv("APP_SECRET")  # Protects the on-demand trigger endpoint
PORT = _env_int("PORT", 8081)

# supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
SOURCE_TABLE = os.getenv("SOURCE_TABLE", "image_index")
PROCESSED_COLUMN = os.getenv("PROCESSED_COLUMN", "printify_uploaded")
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "generated-images")

# printify
PRINTIFY_API_URL = os.getenv("PRINTIFY_API_URL", "https://api.printify.com/v1")
PRINTIFY_API_KEY = (os.getenv("PRINTIFY_API_KEY") or "").strip() or None
PRINTIFY_SHOP_ID = os.getenv("PRINTIFY_SHOP_ID")
PRINTIFY_BLUEPRINT_ID = os.getenv("PRINTIFY_BLUEPRINT_ID", "1")

# pipeline
INGESTION_MODE = os.getenv("INGESTION_MODE", "upload")  # reference | upload
UPLOAD_STRATEGY = os.getenv("UPLOAD_STRATEGY", "url")  # url | file
STAGING_DIR = os.getenv("STAGING_DIR", "./tmp")
POLLING_ENABLED = _env_bool("POLLING_ENABLED", True)
POLL_INTERVAL_SECONDS = _env_float("POLL_INTERVAL_SECONDS", 5.0)
REQUEST_TIMEOUT_SECONDS = _env_float("REQUEST_TIMEOUT_SECONDS", 30.0)
MAX_RECORD_FAILURES = _env_int("MAX_RECORD_FAILURES", 0)
PRODUCT_PRICE = _env_int("PRODUCT_PRICE", 2500)
TITLE_PREFIX = os.getenv("TITLE_PREFIX", "Auto Product:")
PRODUCT_DESCRIPTION = os.getenv(
    "PRODUCT_DESCRIPTION", "Auto-generated product from Supabase"
)

REQUIRED_VARIABLES = (
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
    "PRINTIFY_API_KEY",
    "PRINTIFY_SHOP_ID",
)


@dataclass(slots=True)
class PipelineSettings:
    """Runtime settings handed to the pipeline components."""

    supabase_url: Optional[str]
    supabase_service_key: Optional[str]
    printify_api_key: Optional[str]
    printify_shop_id: Optional[str]
    printify_api_url: str = "https://api.printify.com/v1"
    blueprint_id: Optional[int] = 1
    source_table: str = "image_index"
    processed_column: str = "printify_uploaded"
    storage_bucket: str = "generated-images"
    ingestion_mode: str = "upload"
    upload_strategy: str = "url"
    staging_dir: str = "./tmp"
    poll_interval_seconds: float = 5.0
    request_timeout_seconds: float = 30.0
    max_record_failures: int = 0
    product_price: int = 2500
    title_prefix: str = "Auto Product:"
    product_description: str = "Auto-generated product from Supabase"

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        blueprint = (PRINTIFY_BLUEPRINT_ID or "").strip()
        try:
            blueprint_id = int(blueprint) if blueprint else None
        except ValueError as exc:
            raise ConfigError(
                f"PRINTIFY_BLUEPRINT_ID must be an integer, got {blueprint!r}"
            ) from exc

        return cls(
            supabase_url=SUPABASE_URL,
            supabase_service_key=SUPABASE_SERVICE_KEY,
            printify_api_key=PRINTIFY_API_KEY,
            printify_shop_id=PRINTIFY_SHOP_ID,
            printify_api_url=PRINTIFY_API_URL,
            blueprint_id=blueprint_id,
            source_table=SOURCE_TABLE,
            processed_column=PROCESSED_COLUMN,
            storage_bucket=STORAGE_BUCKET,
            ingestion_mode=INGESTION_MODE.strip().lower(),
            upload_strategy=UPLOAD_STRATEGY.strip().lower(),
            staging_dir=STAGING_DIR,
            poll_interval_seconds=POLL_INTERVAL_SECONDS,
            request_timeout_seconds=REQUEST_TIMEOUT_SECONDS,
            max_record_failures=MAX_RECORD_FAILURES,
            product_price=PRODUCT_PRICE,
            title_prefix=TITLE_PREFIX,
            product_description=PRODUCT_DESCRIPTION,
        )

    def validate(self) -> None:
        """Raise ConfigError listing every missing or invalid setting."""
        problems: List[str] = []
        values = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_KEY": self.supabase_service_key,
            "PRINTIFY_API_KEY": self.printify_api_key,
            "PRINTIFY_SHOP_ID": self.printify_shop_id,
        }
        missing = [name for name in REQUIRED_VARIABLES if not values[name]]
        if missing:
            problems.append(f"missing {', '.join(missing)}")

        if self.ingestion_mode not in ("reference", "upload"):
            problems.append(
                f"INGESTION_MODE must be 'reference' or 'upload', got {self.ingestion_mode!r}"
            )
        if self.upload_strategy not in ("url", "file"):
            problems.append(
                f"UPLOAD_STRATEGY must be 'url' or 'file', got {self.upload_strategy!r}"
            )
        if self.poll_interval_seconds <= 0:
            problems.append("POLL_INTERVAL_SECONDS must be positive")
        if self.request_timeout_seconds <= 0:
            problems.append("REQUEST_TIMEOUT_SECONDS must be positive")
        if self.max_record_failures < 0:
            problems.append("MAX_RECORD_FAILURES must be zero or positive")

        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems))


# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"SUPABASE_URL configured: {bool(SUPABASE_URL)}")
logger.debug(f"SUPABASE_SERVICE_KEY configured: {bool(SUPABASE_SERVICE_KEY)}")
logger.debug(f"PRINTIFY_API_KEY configured: {bool(PRINTIFY_API_KEY)}")
logger.debug(f"PRINTIFY_SHOP_ID configured: {bool(PRINTIFY_SHOP_ID)}")
logger.debug(f"APP_SECRET configured: {bool(APP_SECRET)}")
logger.debug(f"INGESTION_MODE: {INGESTION_MODE}, UPLOAD_STRATEGY: {UPLOAD_STRATEGY}")
