"""Environment-driven settings."""

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Optional

DEFAULT_PROVIDER_URL = "https://api.yookassa.ru/v3"
DEFAULT_PROVIDER_CAP = Decimal("350000")


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from ``ESTIMATEKIT_*`` environment variables."""

    database_path: Optional[str] = None
    log_level: str = "WARNING"
    log_format: str = "console"
    provider_shop_id: Optional[str] = None
    provider_secret_key: Optional[str] = None
    provider_base_url: str = DEFAULT_PROVIDER_URL
    provider_return_url: str = "http://localhost:3000/payment/success"
    provider_invoice_cap: Decimal = DEFAULT_PROVIDER_CAP
    http_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        env = os.environ
        return cls(
            database_path=env.get("ESTIMATEKIT_DB_PATH"),
            log_level=env.get("ESTIMATEKIT_LOG_LEVEL", "WARNING").upper(),
            log_format=env.get("ESTIMATEKIT_LOG_FORMAT", "console").lower(),
            provider_shop_id=env.get("ESTIMATEKIT_PROVIDER_SHOP_ID"),
            provider_secret_key=env.get("ESTIMATEKIT_PROVIDER_SECRET_KEY"),
            provider_base_url=env.get("ESTIMATEKIT_PROVIDER_URL", DEFAULT_PROVIDER_URL),
            provider_return_url=env.get(
                "ESTIMATEKIT_PROVIDER_RETURN_URL", "http://localhost:3000/payment/success"
            ),
            provider_invoice_cap=Decimal(
                env.get("ESTIMATEKIT_PROVIDER_CAP", str(DEFAULT_PROVIDER_CAP))
            ),
            http_timeout=float(env.get("ESTIMATEKIT_HTTP_TIMEOUT", "30")),
        )

    @property
    def provider_configured(self) -> bool:
        return bool(self.provider_shop_id and self.provider_secret_key)


def default_database_path() -> str:
    """Return ``~/.estimatekit/estimatekit.db``, creating the directory."""
    db_dir = Path.home() / ".estimatekit"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "estimatekit.db")
