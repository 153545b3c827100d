"""
Tests for configuration
"""
import re
import pytest
from app.core.config import Settings, settings


def test_settings_loaded():
    """Test that settings are loaded"""
    assert settings.APP_NAME is not None
    assert settings.APP_VERSION is not None


def test_database_config():
    """Test database configuration exists"""
    assert hasattr(settings, 'DATABASE_URL')
    assert hasattr(settings, 'DATABASE_ECHO')


def test_validation_patterns_compile():
    """Test validation patterns are usable regular expressions"""
    assert re.compile(settings.EMAIL_REGEX)
    assert re.compile(settings.PHONE_REGEX)
    assert settings.USERNAME_MIN_LENGTH <= settings.USERNAME_MAX_LENGTH


def test_is_production():
    """Test environment switch"""
    assert Settings(ENVIRONMENT="production").is_production
    assert Settings(ENVIRONMENT="Production").is_production
    assert not Settings(ENVIRONMENT="development").is_production


def test_cors_origins_split():
    """Test comma separated CORS origins"""
    config = Settings(CORS_ORIGINS="https://a.example, https://b.example,")
    assert config.cors_origins == ["https://a.example", "https://b.example"]
