# llm_client.py
"""Chat-completions client for the text-generation service (Azure OpenAI)."""

from typing import Any, Dict, Optional

import requests

from .config import config
from .errors import ConfigurationError, ServiceUnavailable
from .logging_utils import get_logger


class LLMClient:
    """Sends a single prompt to an Azure OpenAI deployment over REST.

    Calls are made exactly once. Any transport failure, timeout, error status
    or unusable response surfaces as ServiceUnavailable; nothing is retried.
    """

    DEFAULT_MAX_TOKENS = 2048

    def __init__(
        self,
        endpoint: Optional[str] = None,
        deployment: Optional[str] = None,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[int] = None,
        temperature: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            endpoint: Service endpoint URL. Defaults to AZURE_OPENAI_ENDPOINT.
            deployment: Model deployment name.
            api_key: Shared default key for callers without their own.
            api_version: REST API version.
            timeout: Request timeout in seconds.
            temperature: Sampling temperature.
            session: Optional requests session; one is created on first use otherwise.
        """
        self.logger = get_logger(__name__)

        self.endpoint = (endpoint or config.AZURE_OPENAI_ENDPOINT or "").rstrip("/")
        self.deployment = deployment or config.AZURE_OPENAI_DEPLOYMENT
        self.api_version = api_version or config.AZURE_OPENAI_API_VERSION
        self.timeout = config.LLM_TIMEOUT_SECONDS if timeout is None else timeout
        self.temperature = config.LLM_TEMPERATURE if temperature is None else temperature

        self._default_api_key = api_key or config.AZURE_OPENAI_API_KEY

        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def resolve_api_key(self, api_key: Optional[str] = None) -> str:
        """Pick the caller's own key when given, else the shared default.

        Raises:
            ConfigurationError: If neither key is available.
        """
        if api_key and api_key.strip():
            return api_key.strip()
        if not self._default_api_key:
            raise ConfigurationError(
                "No API key available: pass a caller key or set AZURE_OPENAI_API_KEY"
            )
        return self._default_api_key

    @property
    def chat_url(self) -> str:
        endpoint = self.endpoint or config.require("AZURE_OPENAI_ENDPOINT").rstrip("/")
        return (
            f"{endpoint}/openai/deployments/{self.deployment}"
            f"/chat/completions?api-version={self.api_version}"
        )

    def _post(self, body: Dict[str, Any], api_key: str) -> Dict[str, Any]:
        url = self.chat_url
        self.logger.debug(
            "Calling generation service",
            extra={"deployment": self.deployment, "max_tokens": body.get("max_tokens")}
        )

        try:
            response = self._get_session().post(
                url,
                headers={"Content-Type": "application/json", "api-key": api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout as e:
            self.logger.error("Generation request timed out", extra={"timeout": self.timeout})
            raise ServiceUnavailable(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            status_code = getattr(e.response, "status_code", None)
            self.logger.error(
                "Generation service returned an error status",
                extra={
                    "status_code": status_code,
                    "body": e.response.text[:500] if e.response is not None else None,
                }
            )
            raise ServiceUnavailable(
                f"Generation service returned HTTP {status_code}", status_code=status_code
            ) from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Generation request failed: {e}")
            raise ServiceUnavailable(f"Generation service request failed: {e}") from e
        except ValueError as e:
            self.logger.error("Generation service response was not JSON")
            raise ServiceUnavailable("Generation service returned invalid JSON") from e

    def _extract_content(self, result: Dict[str, Any]) -> str:
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            self.logger.error(f"Unexpected response envelope: {e}")
            raise ServiceUnavailable(f"Invalid API response structure: {e}") from e
        if not content:
            raise ServiceUnavailable("Empty content in API response")
        if isinstance(result, dict) and "usage" in result:
            self.logger.debug("Generation completed", extra={"usage": result["usage"]})
        return content

    def complete(
        self,
        prompt: str,
        api_key: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> str:
        """Send ``prompt`` as a single user message and return the raw reply text.

        Raises:
            ConfigurationError: If no credential or endpoint is configured.
            ServiceUnavailable: If the call fails or returns no content.
        """
        key = self.resolve_api_key(api_key)
        body = {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        return self._extract_content(self._post(body, key))

    def close(self) -> None:
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
