"""
Configuration management for the brief generator.

This module provides configuration loading and management
for the application.
"""

import os
from typing import Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY: str = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG: bool = os.environ.get('DEBUG', 'false').lower() == 'true'
    TESTING: bool = os.environ.get('TESTING', 'false').lower() == 'true'

    # API settings
    API_TITLE: str = 'Content Brief Generator'
    API_VERSION: str = '1.0.0'

    # Authentication
    API_KEY_HEADER: str = 'X-API-Key'
    USER_ID_HEADER: str = 'X-User-Id'
    API_KEYS: frozenset = field(default_factory=lambda: frozenset([
        key.strip() for key in (os.environ.get('API_KEYS', '').split(',') if os.environ.get('API_KEYS') else [])
    ]))

    # Rate limiting
    RATELIMIT_ENABLED: bool = os.environ.get('RATELIMIT_ENABLED', 'true').lower() == 'true'
    RATELIMIT_STORAGE_URL: str = os.environ.get('RATELIMIT_STORAGE_URL', 'memory://')
    RATELIMIT_DEFAULT: str = os.environ.get('RATELIMIT_DEFAULT', '1000 per hour')
    BRIEF_RATE_LIMIT: str = os.environ.get('BRIEF_RATE_LIMIT', '10 per minute')

    # Logging
    LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE: str = os.environ.get('LOG_FILE', 'logs/app.log')
    LOG_MAX_BYTES: int = int(os.environ.get('LOG_MAX_BYTES', 10485760))  # 10MB
    LOG_BACKUP_COUNT: int = int(os.environ.get('LOG_BACKUP_COUNT', 5))
    LOG_REQUESTS: bool = os.environ.get('LOG_REQUESTS', 'true').lower() == 'true'

    # Search provider (SerpAPI)
    SERP_API_KEY: Optional[str] = os.environ.get('SERP_API_KEY')
    SERP_API_URL: str = os.environ.get('SERP_API_URL', 'https://serpapi.com/search')
    SEARCH_TIMEOUT: int = int(os.environ.get('SEARCH_TIMEOUT', '15'))

    # Extraction provider (Jina Reader)
    JINA_API_KEY: Optional[str] = os.environ.get('JINA_API_KEY')
    JINA_READER_URL: str = os.environ.get('JINA_READER_URL', 'https://r.jina.ai/')
    EXTRACT_TIMEOUT: int = int(os.environ.get('EXTRACT_TIMEOUT', '30'))

    # Generative model
    LLM_PROVIDER: str = os.environ.get('LLM_PROVIDER', 'gemini')
    LLM_MODEL: str = os.environ.get('LLM_MODEL', 'gemini-2.5-flash')
    LLM_API_KEY: Optional[str] = os.environ.get('LLM_API_KEY') or os.environ.get('GOOGLE_GENERATIVE_AI_API_KEY')
    LLM_BASE_URL: Optional[str] = os.environ.get('LLM_BASE_URL')
    LLM_MAX_RETRIES: int = int(os.environ.get('LLM_MAX_RETRIES', '2'))
    LLM_RATE_LIMIT_PER_MINUTE: int = int(os.environ.get('LLM_RATE_LIMIT_PER_MINUTE', '60'))

    # Supabase (persistence, credits, artifact storage)
    SUPABASE_URL: Optional[str] = os.environ.get('SUPABASE_URL')
    SUPABASE_KEY: Optional[str] = os.environ.get('SUPABASE_KEY') or os.environ.get('SUPABASE_SERVICE_ROLE_KEY')
    SUPABASE_PDF_BUCKET: str = os.environ.get('SUPABASE_PDF_BUCKET', 'brief-pdfs')

    # Email notifications (Resend)
    RESEND_API_KEY: Optional[str] = os.environ.get('RESEND_API_KEY')
    RESEND_FROM_EMAIL: str = os.environ.get('RESEND_FROM_EMAIL', 'Briefs <noreply@example.com>')
    APP_URL: str = os.environ.get('APP_URL', 'http://localhost:3000')

    # Pipeline pacing and thresholds
    SEARCH_DELAY_SECONDS: float = float(os.environ.get('SEARCH_DELAY_SECONDS', '1.0'))
    EXTRACT_DELAY_MIN_SECONDS: float = float(os.environ.get('EXTRACT_DELAY_MIN_SECONDS', '1.0'))
    EXTRACT_DELAY_MAX_SECONDS: float = float(os.environ.get('EXTRACT_DELAY_MAX_SECONDS', '2.0'))
    ANALYSIS_DELAY_SECONDS: float = float(os.environ.get('ANALYSIS_DELAY_SECONDS', '0.5'))
    SYNTHESIS_RETRY_DELAY_SECONDS: float = float(os.environ.get('SYNTHESIS_RETRY_DELAY_SECONDS', '2.0'))
    ANALYSIS_CONTENT_CHARS: int = int(os.environ.get('ANALYSIS_CONTENT_CHARS', '12000'))
    PIPELINE_TIMEOUT: int = int(os.environ.get('PIPELINE_TIMEOUT', '600'))  # 10 minutes

    # Celery configuration
    CELERY_BROKER_URL: str = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND: str = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
    CELERY_RESULT_EXPIRES: int = int(os.environ.get('CELERY_RESULT_EXPIRES', '86400'))  # 24 hours
    CELERY_TASK_TIME_LIMIT: int = int(os.environ.get('CELERY_TASK_TIME_LIMIT', '900'))  # 15 minutes
    CELERY_TASK_SOFT_TIME_LIMIT: int = int(os.environ.get('CELERY_TASK_SOFT_TIME_LIMIT', '840'))  # 14 minutes
    CELERY_WORKER_PREFETCH_MULTIPLIER: int = int(os.environ.get('CELERY_WORKER_PREFETCH_MULTIPLIER', '1'))
    CELERY_WORKER_MAX_TASKS_PER_CHILD: int = int(os.environ.get('CELERY_WORKER_MAX_TASKS_PER_CHILD', '1000'))

    # Request settings
    MAX_CONTENT_LENGTH: int = int(os.environ.get('MAX_CONTENT_LENGTH', 65536))  # 64KB

    # CORS settings
    CORS_ORIGINS: List[str] = field(default_factory=lambda: os.environ.get('CORS_ORIGINS', '*').split(','))


@dataclass
class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG: bool = True
    LOG_LEVEL: str = 'DEBUG'
    RATELIMIT_DEFAULT: str = '5000 per hour'  # Very lenient for development


@dataclass
class ProductionConfig(Config):
    """Production configuration."""
    DEBUG: bool = False
    LOG_LEVEL: str = 'WARNING'


@dataclass
class TestingConfig(Config):
    """Testing configuration."""
    TESTING: bool = True
    DEBUG: bool = True
    LOG_LEVEL: str = 'CRITICAL'
    LOG_FILE: str = ''
    RATELIMIT_ENABLED: bool = False
    API_KEYS: frozenset = field(default_factory=lambda: frozenset(['test-api-key']))
    SEARCH_DELAY_SECONDS: float = 0.0
    EXTRACT_DELAY_MIN_SECONDS: float = 0.0
    EXTRACT_DELAY_MAX_SECONDS: float = 0.0
    ANALYSIS_DELAY_SECONDS: float = 0.0
    SYNTHESIS_RETRY_DELAY_SECONDS: float = 0.0


def get_config(config_name: str = None) -> Config:
    """
    Get configuration based on environment.

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Configuration object
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development').lower()

    config_map = {
        'development': DevelopmentConfig,
        'production': ProductionConfig,
        'testing': TestingConfig
    }

    config_class = config_map.get(config_name, DevelopmentConfig)
    return config_class()


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors
    """
    errors = []

    # Check required settings
    if not config.API_KEYS:
        errors.append("API_KEYS must be configured")

    if config.SECRET_KEY == 'dev-secret-key-change-in-production' and config.DEBUG is False:
        errors.append("SECRET_KEY must be changed in production")

    # Check provider credentials
    if not config.SERP_API_KEY:
        errors.append("SERP_API_KEY must be configured")

    if not config.JINA_API_KEY:
        errors.append("JINA_API_KEY must be configured")

    if not config.LLM_API_KEY and config.LLM_PROVIDER != 'ollama':
        errors.append("LLM_API_KEY is required unless LLM_PROVIDER is 'ollama'")

    if config.SUPABASE_URL and not config.SUPABASE_KEY:
        errors.append("SUPABASE_KEY is required when SUPABASE_URL is set")

    if config.EXTRACT_DELAY_MIN_SECONDS > config.EXTRACT_DELAY_MAX_SECONDS:
        errors.append("EXTRACT_DELAY_MIN_SECONDS must not exceed EXTRACT_DELAY_MAX_SECONDS")

    # Check Celery configuration
    if not config.CELERY_BROKER_URL:
        errors.append("CELERY_BROKER_URL must be configured")

    if not config.CELERY_RESULT_BACKEND:
        errors.append("CELERY_RESULT_BACKEND must be configured")

    return errors
