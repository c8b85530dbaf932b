"""
Configuration management for the Flask application.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_REGION = 'us-east-1'


class Config:
    """Base configuration class."""

    # Flask settings
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = False
    TESTING = False

    # AWS settings (S3 credentials arrive per request; these back Bedrock only)
    AWS_ACCESS_KEY_ID = os.getenv('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.getenv('AWS_SECRET_ACCESS_KEY')
    AWS_REGION = os.getenv('AWS_REGION', DEFAULT_REGION)

    # Bedrock text generation
    BEDROCK_REGION = os.getenv('BEDROCK_REGION') or AWS_REGION
    BEDROCK_MODEL_ID = os.getenv('BEDROCK_MODEL_ID', 'us.amazon.nova-2-lite-v1:0')
    BEDROCK_MAX_TOKENS = int(os.getenv('BEDROCK_MAX_TOKENS', '2048'))
    BEDROCK_TEMPERATURE = float(os.getenv('BEDROCK_TEMPERATURE', '0.2'))

    # S3 proxy settings
    UPLOAD_URL_EXPIRES_SECONDS = int(os.getenv('UPLOAD_URL_EXPIRES_SECONDS', '300'))
    CHAT_MAX_BUCKET_FILES = int(os.getenv('CHAT_MAX_BUCKET_FILES', '2000'))

    # Upload settings
    MAX_UPLOAD_SIZE_MB = int(os.getenv('MAX_UPLOAD_SIZE_MB', '10'))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @staticmethod
    def validate_ai_config():
        """Validate that the Bedrock model configuration is present."""
        if not Config.BEDROCK_MODEL_ID:
            raise ValueError(
                "Missing BEDROCK_MODEL_ID. AI endpoints will fail until a model is configured."
            )
        if not Config.BEDROCK_REGION:
            raise ValueError("Missing BEDROCK_REGION or AWS_REGION. Please check your .env file.")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    FLASK_ENV = 'development'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    FLASK_ENV = 'production'


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    FLASK_ENV = 'testing'
    AWS_REGION = DEFAULT_REGION
    BEDROCK_REGION = DEFAULT_REGION


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(config_name=None):
    """Get configuration based on environment."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')
    return config.get(config_name, DevelopmentConfig)
