from __future__ import annotations

import platform
import sys

from tiksync.config import Settings
from tiksync.shopware import ShopwareClient


def run_doctor_checks(settings: Settings, client: ShopwareClient | None = None) -> list[dict[str, str]]:
    checks: list[dict[str, str]] = []

    checks.append(
        {
            "check": "python_version",
            "status": "ok" if sys.version_info >= (3, 10) else "warn",
            "detail": platform.python_version(),
        }
    )

    for name, path in [("queue_dir", settings.queue_dir), ("logs_dir", settings.logs_dir)]:
        checks.append(
            {
                "check": name,
                "status": "ok" if path.is_dir() else "warn",
                "detail": str(path),
            }
        )

    shopware = settings.shopware
    checks.append(
        {
            "check": "shopware_config",
            "status": "ok" if shopware.is_configured else "warn",
            "detail": shopware.api_url or "SHOPWARE_API_URL is not set",
        }
    )

    if client is not None and shopware.is_configured:
        try:
            version = client.check_connection()
            checks.append({"check": "shopware_api", "status": "ok", "detail": f"Shopware {version}"})
        except Exception as exc:  # noqa: BLE001
            checks.append({"check": "shopware_api", "status": "warn", "detail": str(exc)})

    return checks
