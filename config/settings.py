"""
Spare-Parts Quotation Configuration Settings

This module contains all configuration settings for the quotation service.
Settings can be overridden by environment variables (or a local .env file).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
ASSETS_DIR = BASE_DIR / "assets"

# Defaults
DEFAULT_FROM_EMAIL = "cotizaciones@gruponsr.mx"
DEFAULT_LOGO_PATH = str(ASSETS_DIR / "logo.jpg")

# Business Rules
MAX_PRODUCTS_PER_REQUEST = 2


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    """
    Environment snapshot passed explicitly to the client factories in
    quoting.clients, so nothing reads the environment after startup.

    ENVIRONMENT:
        SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY   persistent store
        RESEND_API_KEY, QUOTATION_FROM_EMAIL      outbound email
        NOTIFICATION_EMAIL                        operator inbox (intake)
        QUOTATION_LOGO_PATH                       PDF header logo
        QUOTATION_REQUIRE_PENDING                 status guard on reply update
        WEBHOOK_HOST, WEBHOOK_PORT, LOG_LEVEL     webhook server
    """
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    resend_api_key: Optional[str] = None
    from_email: str = DEFAULT_FROM_EMAIL
    notification_email: Optional[str] = None
    logo_path: Optional[str] = DEFAULT_LOGO_PATH
    require_pending: bool = False
    webhook_host: str = "0.0.0.0"
    webhook_port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY"),
            resend_api_key=os.getenv("RESEND_API_KEY"),
            from_email=os.getenv("QUOTATION_FROM_EMAIL", DEFAULT_FROM_EMAIL),
            notification_email=os.getenv("NOTIFICATION_EMAIL"),
            logo_path=os.getenv("QUOTATION_LOGO_PATH", DEFAULT_LOGO_PATH),
            require_pending=_flag("QUOTATION_REQUIRE_PENDING"),
            webhook_host=os.getenv("WEBHOOK_HOST", "0.0.0.0"),
            webhook_port=int(os.getenv("WEBHOOK_PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def missing(self) -> list:
        """Names of required variables that are not set."""
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_role_key,
            "RESEND_API_KEY": self.resend_api_key,
        }
        return [name for name, value in required.items() if not value]
