"""
Settings and client-factory configuration checks.
"""
import pytest

from config.settings import DEFAULT_FROM_EMAIL, Settings
from quoting.clients import build_intake, build_orchestrator

ENV_VARS = [
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "RESEND_API_KEY",
    "QUOTATION_FROM_EMAIL",
    "NOTIFICATION_EMAIL",
    "QUOTATION_REQUIRE_PENDING",
    "WEBHOOK_PORT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env()

    assert settings.from_email == DEFAULT_FROM_EMAIL
    assert settings.require_pending is False
    assert settings.webhook_port == 8000
    assert settings.missing() == ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "RESEND_API_KEY"]


def test_values_from_environment(clean_env):
    clean_env.setenv("SUPABASE_URL", "https://example.supabase.co")
    clean_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")
    clean_env.setenv("RESEND_API_KEY", "re_key")
    clean_env.setenv("QUOTATION_REQUIRE_PENDING", "true")
    clean_env.setenv("WEBHOOK_PORT", "9001")

    settings = Settings.from_env()

    assert settings.missing() == []
    assert settings.require_pending is True
    assert settings.webhook_port == 9001


def test_build_orchestrator_requires_credentials():
    with pytest.raises(RuntimeError, match="SUPABASE_URL"):
        build_orchestrator(Settings())


def test_build_intake_requires_notification_email():
    settings = Settings(supabase_url="https://example.supabase.co",
                        supabase_service_role_key="service-key", resend_api_key="re_key")

    with pytest.raises(RuntimeError, match="NOTIFICATION_EMAIL"):
        build_intake(settings)
