from orderflow.core.config import Settings, settings
from orderflow.core.timeutil import delivery_estimate, format_day
from datetime import datetime


def test_settings_loaded():
    assert settings.HOST == "0.0.0.0"
    assert settings.PORT == 8000
    assert settings.ORDER_EXPIRY_DAYS == 2


def test_postgres_host_overrides_database_url():
    config = Settings(POSTGRES_HOST="db", POSTGRES_USER="svc", POSTGRES_PASSWORD="pw", POSTGRES_DB="orders")
    assert config.effective_database_url == "postgresql+asyncpg://svc:pw@db:5432/orders"


def test_database_url_used_without_postgres_host():
    config = Settings(DATABASE_URL="sqlite:///./orders.db", POSTGRES_HOST=None)
    assert config.effective_database_url == "sqlite:///./orders.db"


def test_cors_origins_from_comma_separated_string():
    config = Settings(CORS_ORIGINS="http://a.test, http://b.test")
    assert config.CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_delivery_estimate_format():
    start = datetime(2026, 10, 19, 9, 30)
    assert format_day(start) == "19-Oct-2026"
    assert delivery_estimate(start, 6, 8) == "25-Oct-2026 - 27-Oct-2026"
