# config.py
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()


class LeadQualifierConfig:
    """Settings for the lead qualifier, read once from environment variables."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

        self.APP_ENV = self._get("APP_ENV", "dev")
        self.LOG_LEVEL = self._get("LOG_LEVEL", "INFO")

        # Managed identity used for blob storage outside dev
        self.AZURE_CLIENT_ID = self._get("AZURE_CLIENT_ID")

        # Text-generation service. The API key is the shared default that
        # callers without a key of their own fall back to.
        self.AZURE_OPENAI_ENDPOINT = self._get("AZURE_OPENAI_ENDPOINT")
        self.AZURE_OPENAI_API_KEY = self._get("AZURE_OPENAI_API_KEY")
        self.AZURE_OPENAI_DEPLOYMENT = self._get("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")
        self.AZURE_OPENAI_API_VERSION = self._get("AZURE_OPENAI_API_VERSION", "2024-10-21")
        self.LLM_TIMEOUT_SECONDS = self._get_int("LLM_TIMEOUT_SECONDS", 60)
        self.LLM_TEMPERATURE = self._get_float("LLM_TEMPERATURE", 0.3)

        # Website excerpts
        self.WEBSITE_FETCH_TIMEOUT_SECONDS = self._get_int("WEBSITE_FETCH_TIMEOUT_SECONDS", 15)
        self.WEBSITE_MAX_REDIRECTS = self._get_int("WEBSITE_MAX_REDIRECTS", 5)
        self.WEBSITE_USER_AGENT = self._get("WEBSITE_USER_AGENT", "LeadQualifier/1.0")

        # Qualification store
        self.AZURE_STORAGE_ACCOUNT_URL = self._get("AZURE_STORAGE_ACCOUNT_URL")
        self.AZURE_STORAGE_CONTAINER = self._get("AZURE_STORAGE_CONTAINER", "lead-qualifications")
        self.AZURE_STORAGE_SAS_TOKEN = self._get("AZURE_STORAGE_SAS_TOKEN")

        # Report email delivery
        self.SENDGRID_API_KEY = self._get("SENDGRID_API_KEY")
        self.SENDGRID_FROM_EMAIL = self._get("SENDGRID_FROM_EMAIL")
        self.SENDGRID_FROM_NAME = self._get("SENDGRID_FROM_NAME", "Lead Qualifier")

        self._azure_credentials = None

    def get_azure_credential(self, client_id: Optional[str] = None):
        """
        Build an Azure credential for the current environment.

        Development uses DefaultAzureCredential (az login, env vars); every
        other environment uses the managed identity, optionally a
        user-assigned one selected by ``client_id``.
        """
        from azure.identity import DefaultAzureCredential, ManagedIdentityCredential

        if self.APP_ENV == "dev":
            return DefaultAzureCredential()
        return ManagedIdentityCredential(client_id=client_id or None)

    def get_azure_credentials(self):
        """Return the process-wide Azure credential, creating it on first use."""
        if self._azure_credentials is None:
            self._azure_credentials = self.get_azure_credential(self.AZURE_CLIENT_ID)
        return self._azure_credentials

    def require(self, name: str) -> str:
        """Return a configured value, failing if it is blank.

        Raises:
            ConfigurationError: If the setting is missing or blank
        """
        value = getattr(self, name, "")
        if not value:
            raise ConfigurationError(f"{name} is not configured")
        return value

    @staticmethod
    def _get(name: str, default: str = "") -> str:
        return os.environ.get(name, default)

    def _get_int(self, name: str, default: int) -> int:
        raw = self._get(name)
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e

    def _get_float(self, name: str, default: float) -> float:
        raw = self._get(name)
        if not raw:
            return default
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


# Module-level settings shared by every client
config = LeadQualifierConfig()
