"""
LiteLLM client implementation.

This module provides the core LiteLLM integration for interacting
with various LLM providers through a unified interface.
"""

import logging
import time
from datetime import datetime

from litellm import acompletion
from litellm.exceptions import (
    AuthenticationError,
    BadRequestError,
    RateLimitError,
    APIConnectionError,
    APIError,
    Timeout,
    ServiceUnavailableError
)

from ...core.models.errors import LLMError
from ...core.models.llm import LLMConfig, LLMResponse


logger = logging.getLogger(__name__)


class LiteLLMClient:
    """
    LiteLLM client for unified LLM provider access.

    This client provides a consistent interface for interacting with
    various LLM providers through LiteLLM and translates provider
    exceptions into ``LLMError`` with a retryable flag.
    """

    def __init__(self, timeout: int = 60):
        """
        Initialize LiteLLM client.

        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = timeout

        logger.debug(f"LiteLLMClient initialized with timeout: {timeout}s")

    async def generate(self, config: LLMConfig) -> LLMResponse:
        """
        Generate text using LiteLLM.

        Args:
            config: LLM configuration

        Returns:
            LLMResponse with generated content

        Raises:
            LLMError: If generation fails
        """
        messages = []

        if config.system_prompt:
            messages.append({
                "role": "system",
                "content": config.system_prompt
            })

        messages.append({
            "role": "user",
            "content": config.user_prompt
        })

        params = {
            "model": config.model.litellm_name,
            "messages": messages,
            "temperature": config.temperature if config.temperature is not None else config.model.temperature,
            "top_p": config.model.top_p,
            "timeout": config.model.timeout or self.timeout
        }

        max_tokens = config.max_tokens or config.model.max_tokens
        if max_tokens:
            params["max_tokens"] = max_tokens

        if config.json_mode:
            params["response_format"] = {"type": "json_object"}

        if config.model.api_key:
            params["api_key"] = config.model.api_key

        if config.model.base_url:
            params["api_base"] = config.model.base_url

        provider = config.model.provider
        model = config.model.model_name

        try:
            start_time = time.time()
            response = await acompletion(**params)
            response_time = time.time() - start_time

        except AuthenticationError as e:
            logger.error(f"Authentication error: {str(e)}")
            raise LLMError(f"Authentication failed: {str(e)}", provider, model, retryable=False)

        except BadRequestError as e:
            logger.error(f"Bad request: {str(e)}")
            raise LLMError(f"Bad request: {str(e)}", provider, model, retryable=False)

        except RateLimitError as e:
            logger.warning(f"Rate limit error: {str(e)}")
            raise LLMError(f"Rate limit exceeded: {str(e)}", provider, model, retryable=True)

        except Timeout as e:
            logger.warning(f"Timeout error: {str(e)}")
            raise LLMError(f"Request timeout: {str(e)}", provider, model, retryable=True)

        except (ServiceUnavailableError, APIConnectionError) as e:
            logger.warning(f"Service unavailable: {str(e)}")
            raise LLMError(f"Service unavailable: {str(e)}", provider, model, retryable=True)

        except APIError as e:
            logger.error(f"API error: {str(e)}")
            raise LLMError(f"API error: {str(e)}", provider, model, retryable=True)

        choice = response.choices[0]
        content = choice.message.content or ""

        if choice.finish_reason == "length":
            logger.warning(f"{provider}/{model} output hit the token limit; JSON may be truncated")

        usage = getattr(response, "usage", None)

        return LLMResponse(
            content=content,
            finish_reason=choice.finish_reason,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            total_tokens=usage.total_tokens if usage else 0,
            model=model,
            provider=provider,
            request_id=config.request_id,
            response_time=response_time,
            created_at=datetime.utcnow()
        )
