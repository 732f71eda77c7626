# ec2_pricing/config/settings.py

"""Central configuration for the EC2 pricing service."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    """Read an int from the environment, falling back on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    """Central configuration for the EC2 pricing service."""

    # --- AWS ---
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
    # The Price List API is only served from a handful of regions
    PRICING_API_REGION: str = os.getenv("PRICING_API_REGION", "us-east-1")

    # --- Caching ---
    CACHE_TTL: float = _env_float("CACHE_TTL", 600.0)  # Region cache (secs)

    # --- Scheduler & alerts ---
    PRICE_UPDATE_INTERVAL_HOURS: float = _env_float(
        "PRICE_UPDATE_INTERVAL_HOURS", 6.0
    )
    ALERT_QUIET_PERIOD_HOURS: float = _env_float(
        "ALERT_QUIET_PERIOD_HOURS", 12.0
    )

    # --- Price history ---
    HISTORY_DEFAULT_DAYS: int = _env_int("HISTORY_DEFAULT_DAYS", 30)
    HISTORY_MAX_DAYS: int = 365
    HISTORY_JITTER: float = 0.05        # ±5% around the current price
    RESERVED_SEED_EVERY_DAYS: int = 7   # Reserved rates rarely change

    # --- Outbound mail (alerts disabled when incomplete) ---
    SMTP_HOST: str | None = os.getenv("SMTP_HOST") or None
    SMTP_PORT: int = _env_int("SMTP_PORT", 587)
    SMTP_USER: str | None = os.getenv("SMTP_USER") or None
    SMTP_PASS: str | None = os.getenv("SMTP_PASS") or None
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "noreply@example.com")

    # --- HTTP API ---
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = _env_int("PORT", 4000)
    API_BASE_URL: str = os.getenv(
        "API_BASE_URL", "http://localhost:4000/api"
    )
    REQUEST_TIMEOUT: int = 15           # Dashboard -> API timeout (secs)
    HOURS_PER_MONTH: int = 730
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")  # stderr threshold

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    EXPORTS_DIR: Path = BASE_DIR / "exports"
    DATABASE_PATH: Path = Path(
        os.getenv("DATABASE_PATH", str(DATA_DIR / "ec2_pricing.db"))
    )

    # --- Registries ---
    AWS_REGIONS: dict[str, str] = {
        "us-east-1": "US East (N. Virginia)",
        "us-east-2": "US East (Ohio)",
        "us-west-1": "US West (N. California)",
        "us-west-2": "US West (Oregon)",
        "eu-west-1": "EU (Ireland)",
        "eu-central-1": "EU (Frankfurt)",
        "ap-southeast-1": "Asia Pacific (Singapore)",
        "ap-southeast-2": "Asia Pacific (Sydney)",
        "ap-northeast-1": "Asia Pacific (Tokyo)",
        "sa-east-1": "South America (São Paulo)",
    }

    SUPPORTED_OS: list[str] = ["Linux", "Windows"]

    # Spot price history uses product descriptions, not OS names
    SPOT_PRODUCT_DESCRIPTIONS: dict[str, str] = {
        "Linux": "Linux/UNIX",
        "Windows": "Windows",
    }

    PRICE_TYPES: list[str] = ["onDemand", "reserved", "spot"]

    TRACKED_INSTANCE_TYPES: list[str] = [
        "t2.micro", "t2.small", "t2.medium",
        "t3.micro", "t3.small", "t3.medium",
        "m5.large", "m5.xlarge", "m5.2xlarge",
        "c5.large", "c5.xlarge", "c5.2xlarge",
        "r5.large", "r5.xlarge", "r5.2xlarge",
    ]

    @classmethod
    def smtp_configured(cls) -> bool:
        """True when host and credentials for outbound mail are all set."""
        return bool(cls.SMTP_HOST and cls.SMTP_USER and cls.SMTP_PASS)


def is_valid_region(region_id: str) -> bool:
    """Check a region id against the supported registry."""
    return region_id in Settings.AWS_REGIONS


def get_region_name(region_id: str) -> str:
    """Map a region id to its display name."""
    return Settings.AWS_REGIONS.get(region_id, "Unknown Region")


def get_all_regions() -> list[dict[str, str]]:
    """Return every supported region as ``{"id", "name"}`` dicts."""
    return [
        {"id": region_id, "name": name}
        for region_id, name in Settings.AWS_REGIONS.items()
    ]
