"""
Exam Cell Question Bank - Configuration Provider
Fetches modules_info / sections_rules for a catalog selection from the backend.
"""
import logging
from dataclasses import asdict
from typing import Any, Optional

import httpx

from config.settings import Settings, get_settings
from src.question_bank.errors import ConfigurationError
from src.question_bank.models import BankSelection

logger = logging.getLogger(__name__)


def _backend_message(response: httpx.Response) -> str:
    """Prefer the backend's own message/error/detail field over the bare status."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return f"Backend responded with {response.status_code}"


class HttpConfigurationProvider:
    """
    POST {backend_base_url}{configuration_path} with the four numeric ids.

    Args:
        settings: Application settings (defaults to get_settings())
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings or get_settings()
        self.url = self.settings.backend_base_url.rstrip("/") + self.settings.configuration_path
        self.timeout = self.settings.backend_timeout
        self._transport = transport

    async def fetch_configuration(self, selection: BankSelection) -> Any:
        payload = asdict(selection)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"Configuration request failed: {e}")
            raise ConfigurationError("Failed to load question bank configuration") from e

        if response.status_code != 200:
            message = _backend_message(response)
            logger.warning(f"Configuration request rejected ({response.status_code}): {message}")
            raise ConfigurationError(message)

        try:
            return response.json()
        except ValueError as e:
            logger.warning("Configuration response is not JSON")
            raise ConfigurationError("Invalid configuration response") from e
