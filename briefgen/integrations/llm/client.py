"""
Main LLM client for the brief generator.

This module provides a unified interface for interacting with
various Large Language Model providers through LiteLLM.
"""

import logging
import time
from typing import Optional

from ...core.models.errors import LLMError
from ...core.models.llm import LLMConfig, LLMResponse, LLMModel
from .litellm_client import LiteLLMClient
from .retry_handler import RetryHandler
from .rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class LLMClient:
    """
    Main LLM client that provides a unified interface for LLM operations.

    This client handles:
    - Multiple LLM providers through LiteLLM
    - Retry logic for transient transport errors
    - Rate limiting per client instance
    """

    def __init__(
        self,
        default_provider: str = "gemini",
        default_model: str = "gemini-2.5-flash",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        rate_limit_per_minute: int = 60,
        timeout: int = 60
    ):
        """
        Initialize LLM client.

        Args:
            default_provider: Default LLM provider
            default_model: Default model name
            api_key: API key for LLM provider
            base_url: Base URL for LLM API
            max_retries: Maximum number of transport retries
            retry_delay: Base delay between retries in seconds
            rate_limit_per_minute: Rate limit per minute
            timeout: Request timeout in seconds
        """
        self.default_provider = default_provider
        self.default_model = default_model
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout

        self.litellm_client = LiteLLMClient(timeout=timeout)

        self.retry_handler = RetryHandler(
            max_retries=max_retries,
            base_delay=retry_delay
        )

        self.rate_limiter = RateLimiter(
            requests_per_minute=rate_limit_per_minute,
            name=f"llm:{default_provider}"
        )

        logger.info(f"LLMClient initialized with provider: {default_provider}, model: {default_model}")

    @classmethod
    def from_config(cls, config) -> 'LLMClient':
        """Build a client from application configuration."""
        return cls(
            default_provider=config.LLM_PROVIDER,
            default_model=config.LLM_MODEL,
            api_key=config.LLM_API_KEY,
            base_url=config.LLM_BASE_URL,
            max_retries=config.LLM_MAX_RETRIES,
            rate_limit_per_minute=config.LLM_RATE_LIMIT_PER_MINUTE
        )

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        request_id: Optional[str] = None
    ) -> LLMResponse:
        """
        Generate text using LLM.

        Args:
            prompt: User prompt
            system_prompt: System prompt
            temperature: Temperature for generation
            max_tokens: Maximum tokens
            json_mode: Ask the provider for a JSON object response
            request_id: Request ID for tracing

        Returns:
            LLMResponse with generated content

        Raises:
            LLMError: If generation fails
        """
        config = LLMConfig(
            model=LLMModel(
                provider=self.default_provider,
                model_name=self.default_model,
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout
            ),
            system_prompt=system_prompt,
            user_prompt=prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=json_mode,
            request_id=request_id
        )

        await self.rate_limiter.wait_if_needed()

        start_time = time.time()

        try:
            response = await self.retry_handler.execute_with_retry(
                self.litellm_client.generate,
                config
            )
        except LLMError:
            raise
        except Exception as e:
            logger.error(f"LLM generation failed: {str(e)}")
            raise LLMError(
                message=f"LLM generation failed: {str(e)}",
                provider=self.default_provider,
                model=self.default_model,
                retryable=True
            ) from e

        response.response_time = time.time() - start_time
        return response
