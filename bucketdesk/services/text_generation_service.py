"""
Text generation with Amazon Bedrock (Converse API).
"""
import logging
import os
from functools import wraps
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError
from flask import current_app, has_app_context

from bucketdesk.services.assistant.parsers import NO_FALLBACK, extract_json_object

logger = logging.getLogger(__name__)


class TextGenerationError(Exception):
    """Base exception for text generation errors."""
    pass


def handle_bedrock_errors(func):
    """Decorator to handle AWS Bedrock errors and convert to user-friendly messages."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_msg = e.response['Error']['Message']

            if error_code == 'AccessDeniedException':
                raise TextGenerationError("AWS permission denied. Ensure IAM policy includes bedrock:InvokeModel for the configured model.")
            elif error_code == 'ModelAccessDeniedException':
                raise TextGenerationError("Model access denied. Request model access in the Bedrock console.")
            elif error_code == 'ValidationException':
                raise TextGenerationError(f"Invalid request parameters: {error_msg}")
            elif error_code == 'ThrottlingException':
                raise TextGenerationError("AWS rate limit exceeded. Please try again in a moment.")
            elif error_code == 'ServiceQuotaExceededException':
                raise TextGenerationError("Service quota exceeded. Contact AWS Support to increase limits.")
            elif error_code == 'ResourceNotFoundException':
                raise TextGenerationError(f"Model not found: {error_msg}")
            else:
                raise TextGenerationError(f"Bedrock error ({error_code}): {error_msg}")
    return wrapper


class TextGenerationService:
    """Single-turn text generation against one Bedrock model."""

    def __init__(self, model_id: str, region: str, aws_access_key: str = None, aws_secret_key: str = None,
                 max_tokens: int = 2048, temperature: float = 0.2):
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.temperature = temperature

        bedrock_config = Config(
            read_timeout=120,
            connect_timeout=30,
            retries={'max_attempts': 3, 'mode': 'standard'}
        )

        session_kwargs = {'region_name': region}
        if aws_access_key and aws_secret_key:
            session_kwargs['aws_access_key_id'] = aws_access_key
            session_kwargs['aws_secret_access_key'] = aws_secret_key

        self.client = boto3.client('bedrock-runtime', config=bedrock_config, **session_kwargs)

    @handle_bedrock_errors
    def generate_text(self, prompt: str) -> str:
        """
        Send one user prompt and return the reply text.

        Raises:
            TextGenerationError: If Bedrock fails or the reply has no text
        """
        response = self.client.converse(
            modelId=self.model_id,
            messages=[{"role": "user", "content": [{"text": prompt}]}],
            inferenceConfig={
                "maxTokens": self.max_tokens,
                "temperature": self.temperature
            }
        )

        content = response.get('output', {}).get('message', {}).get('content', [])
        text = ''.join(block.get('text', '') for block in content if isinstance(block, dict))
        if not text.strip():
            raise TextGenerationError("No text in model response")

        usage = response.get('usage', {})
        logger.debug(
            "Bedrock reply: %s chars, tokens in=%s out=%s",
            len(text), usage.get('inputTokens'), usage.get('outputTokens')
        )
        return text

    def generate_text_with_json(self, prompt: str, fallback: Any = NO_FALLBACK) -> Any:
        """
        Generate a reply and parse the JSON object inside it.

        Args:
            prompt: Prompt asking for a JSON object
            fallback: Returned when the reply holds no valid JSON object

        Returns:
            Parsed JSON value, or the fallback

        Raises:
            TextGenerationError: If the model call fails (never replaced by the fallback)
            JsonExtractionError: If parsing fails and no fallback was given
        """
        text = self.generate_text(prompt)
        return extract_json_object(text, fallback=fallback)


def get_text_generation_service(app=None) -> TextGenerationService:
    """
    Factory function to create TextGenerationService instance.

    Args:
        app: Flask app instance (optional, defaults to current_app when in a request)

    Returns:
        TextGenerationService instance
    """
    if app is None and has_app_context():
        app = current_app

    if app:
        return TextGenerationService(
            model_id=app.config['BEDROCK_MODEL_ID'],
            region=app.config['BEDROCK_REGION'],
            aws_access_key=app.config.get('AWS_ACCESS_KEY_ID'),
            aws_secret_key=app.config.get('AWS_SECRET_ACCESS_KEY'),
            max_tokens=app.config.get('BEDROCK_MAX_TOKENS', 2048),
            temperature=app.config.get('BEDROCK_TEMPERATURE', 0.2)
        )

    region = os.getenv('BEDROCK_REGION') or os.getenv('AWS_REGION', 'us-east-1')
    return TextGenerationService(
        model_id=os.getenv('BEDROCK_MODEL_ID', 'us.amazon.nova-2-lite-v1:0'),
        region=region,
        aws_access_key=os.getenv('AWS_ACCESS_KEY_ID'),
        aws_secret_key=os.getenv('AWS_SECRET_ACCESS_KEY')
    )
