"""
Application configuration.
Secrets can be bootstrapped from Azure Key Vault when KEY_VAULT_NAME is set;
otherwise everything comes from environment variables / the .env file.
"""
import os
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key Vault → environment variable mapping
# Secret names in Key Vault use lowercase-dashes; env vars use UPPER_SNAKE.
# ---------------------------------------------------------------------------
_KV_TO_ENV: dict[str, str] = {
    "database-url":        "DATABASE_URL",
    "jwt-secret-key":      "JWT_SECRET_KEY",
    "sendgrid-api-key":    "SENDGRID_API_KEY",
    "sendgrid-from-email": "SENDGRID_FROM_EMAIL",
    "sendgrid-from-name":  "SENDGRID_FROM_NAME",
}


def _load_from_key_vault(vault_name: str) -> int:
    """
    Fetch secrets from Azure Key Vault and inject them into os.environ.
    Returns the number of secrets successfully loaded.
    """
    from azure.identity import DefaultAzureCredential
    from azure.keyvault.secrets import SecretClient
    from azure.core.exceptions import AzureError, ResourceNotFoundError

    vault_url = f"https://{vault_name}.vault.azure.net/"
    try:
        client = SecretClient(vault_url=vault_url, credential=DefaultAzureCredential())
        loaded = 0
        for kv_name, env_name in _KV_TO_ENV.items():
            try:
                secret = client.get_secret(kv_name)
                if secret.value:
                    os.environ[env_name] = secret.value
                    loaded += 1
            except ResourceNotFoundError:
                pass  # not stored in this vault
        return loaded
    except AzureError as e:
        logger.warning("Key Vault load failed (%s); falling back to environment / .env file.", e)
        return 0


_kv_name = os.environ.get("KEY_VAULT_NAME", "")
if _kv_name:
    _n = _load_from_key_vault(_kv_name)
    if _n:
        logger.info("Loaded %d secrets from Key Vault '%s'", _n, _kv_name)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    KEY_VAULT_NAME: str = ""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./slotbook.db"
    DATABASE_ECHO: bool = False

    # Auth
    JWT_SECRET_KEY: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@slotbook.app"
    SENDGRID_FROM_NAME: str = "Slotbook"

    # Booking defaults
    DEFAULT_BUSINESS_NAME: str = "Slotbook"
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"
    DEFAULT_DURATION_MINUTES: int = 45
    PUBLIC_SLOT_INTERVAL_MINUTES: int = 15
    PUBLIC_BOOKING_OPEN_TIME: str = "09:00"
    PUBLIC_BOOKING_CLOSE_TIME: str = "18:00"

    class Config:
        env_file = ".env"


settings = Settings()

if not settings.JWT_SECRET_KEY:
    if settings.APP_ENV not in ("development", "test"):
        raise ValueError(
            "JWT_SECRET_KEY is not set. It must exist in Key Vault ('jwt-secret-key') "
            "or as a JWT_SECRET_KEY environment variable."
        )
    logger.warning("JWT_SECRET_KEY not set; using an insecure development key.")
    settings.JWT_SECRET_KEY = "dev-insecure-jwt-secret"
