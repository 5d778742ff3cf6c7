"""
LLM-related data models and schemas.

This module defines the data structures for generative-model
configuration, requests, and responses.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class LLMProvider(str, Enum):
    """LLM provider types."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    MISTRAL = "mistral"
    OLLAMA = "ollama"


class LLMModel(BaseModel):
    """LLM model configuration."""

    model_config = ConfigDict(use_enum_values=True, protected_namespaces=())

    provider: LLMProvider = Field(..., description="LLM provider")
    model_name: str = Field(..., description="Model name")
    api_key: Optional[str] = Field(None, description="API key")
    base_url: Optional[str] = Field(None, description="Base URL for API")

    # Model Parameters
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Temperature")
    max_tokens: Optional[int] = Field(None, ge=1, le=100000, description="Maximum tokens")
    top_p: float = Field(default=1.0, ge=0.0, le=1.0, description="Top-p sampling")

    # Advanced Parameters
    timeout: int = Field(default=60, ge=1, le=300, description="Request timeout in seconds")

    @property
    def litellm_name(self) -> str:
        """Model string in LiteLLM's provider/model form."""
        return f"{self.provider}/{self.model_name}"


class LLMConfig(BaseModel):
    """LLM configuration for requests."""

    model_config = ConfigDict(use_enum_values=True, protected_namespaces=())

    model: LLMModel = Field(..., description="LLM model configuration")
    system_prompt: Optional[str] = Field(None, description="System prompt")
    user_prompt: str = Field(..., description="User prompt")

    # Request Parameters
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0, description="Override temperature")
    max_tokens: Optional[int] = Field(None, ge=1, le=100000, description="Override max tokens")
    json_mode: bool = Field(default=False, description="Ask the provider for a JSON object")

    # Metadata
    request_id: Optional[str] = Field(None, description="Request ID for tracking")


class LLMResponse(BaseModel):
    """LLM response model."""

    model_config = ConfigDict(use_enum_values=True)

    # Content
    content: str = Field(..., description="Generated content")
    finish_reason: Optional[str] = Field(None, description="Reason for completion")

    # Usage Statistics
    prompt_tokens: int = Field(default=0, ge=0, description="Prompt tokens used")
    completion_tokens: int = Field(default=0, ge=0, description="Completion tokens used")
    total_tokens: int = Field(default=0, ge=0, description="Total tokens used")

    # Model Information
    model: str = Field(..., description="Model used")
    provider: str = Field(..., description="Provider used")

    # Request Information
    request_id: Optional[str] = Field(None, description="Request ID")
    response_time: float = Field(default=0.0, ge=0.0, description="Response time in seconds")

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Response timestamp")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional metadata")
