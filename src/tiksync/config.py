from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv


@dataclass(slots=True)
class ShopwareConfig:
    api_url: str
    username: str
    api_key: str
    payment_method_id: int = 5
    shipping_method_id: int = 9
    country_id: int = 2
    shop_id: int = 1
    guest_group: str = "EK"
    order_status_id: int = 0
    payment_status_id: int = 12
    default_tax_rate: Decimal = Decimal("19")
    default_tax_id: int = 1
    shipping_tax_rate: Decimal = Decimal("19")
    timeout_sec: float = 30.0
    retry_attempts: int = 5
    retry_base_delay_sec: float = 1.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.username and self.api_key)


@dataclass(slots=True)
class Settings:
    root_dir: Path
    queue_dir: Path
    logs_dir: Path
    shopware: ShopwareConfig
    poll_interval_sec: float = 300.0
    queue_pattern: str = "*.csv"
    date_dayfirst: bool = True

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(override=False)

        root_env = os.getenv("TIKSYNC_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()

        queue_dir = Path(os.getenv("TIKSYNC_QUEUE_DIR", root_dir / "queue")).expanduser().resolve()
        logs_dir = Path(os.getenv("TIKSYNC_LOG_DIR", root_dir / "logs")).expanduser().resolve()
        poll_interval_sec = float(os.getenv("TIKSYNC_POLL_INTERVAL_SEC", "300"))
        date_dayfirst = os.getenv("TIKSYNC_DATE_DAYFIRST", "true").strip().lower() not in {"0", "false", "no"}

        return cls(
            root_dir=root_dir,
            queue_dir=queue_dir,
            logs_dir=logs_dir,
            shopware=cls._load_shopware(),
            poll_interval_sec=poll_interval_sec,
            date_dayfirst=date_dayfirst,
        )

    @staticmethod
    def _load_shopware() -> ShopwareConfig:
        api_url = os.getenv("SHOPWARE_API_URL", "").strip()
        if api_url and not api_url.endswith("/"):
            # requests joins relative endpoints onto the base URL
            api_url += "/"

        return ShopwareConfig(
            api_url=api_url,
            username=os.getenv("SHOPWARE_API_USERNAME", ""),
            api_key=os.getenv("SHOPWARE_API_KEY", ""),
            payment_method_id=int(os.getenv("SHOPWARE_PAYMENT_METHOD_ID", "5")),
            shipping_method_id=int(os.getenv("SHOPWARE_SHIPPING_METHOD_ID", "9")),
            country_id=int(os.getenv("SHOPWARE_COUNTRY_ID", "2")),
            shop_id=int(os.getenv("SHOPWARE_SHOP_ID", "1")),
            guest_group=os.getenv("SHOPWARE_GUEST_GROUP", "EK"),
            order_status_id=int(os.getenv("SHOPWARE_ORDER_STATUS_ID", "0")),
            payment_status_id=int(os.getenv("SHOPWARE_PAYMENT_STATUS_ID", "12")),
            default_tax_rate=Decimal(os.getenv("SHOPWARE_DEFAULT_TAX_RATE", "19")),
            default_tax_id=int(os.getenv("SHOPWARE_DEFAULT_TAX_ID", "1")),
            shipping_tax_rate=Decimal(os.getenv("SHOPWARE_SHIPPING_TAX_RATE", "19")),
            timeout_sec=float(os.getenv("SHOPWARE_TIMEOUT_SEC", "30")),
            retry_attempts=int(os.getenv("SHOPWARE_RETRY_ATTEMPTS", "5")),
            retry_base_delay_sec=float(os.getenv("SHOPWARE_RETRY_BASE_DELAY_SEC", "1")),
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.queue_dir, self.logs_dir]:
            path.mkdir(parents=True, exist_ok=True)
