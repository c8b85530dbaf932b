"""Shared test configuration and fixtures."""
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from bucketdesk import create_app


def bedrock_reply(text):
    """Converse API response carrying a single text block."""
    return {
        'output': {'message': {'role': 'assistant', 'content': [{'text': text}]}},
        'usage': {'inputTokens': 100, 'outputTokens': 20}
    }


def client_error(code, message='', operation='ListObjectsV2'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


def redirect_error(operation='ListObjectsV2'):
    return client_error(
        'PermanentRedirect',
        'The bucket you are attempting to access must be addressed using the specified endpoint.',
        operation
    )


@pytest.fixture
def app():
    app = create_app('testing')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def s3_credentials():
    return {
        'bucket': 'test-bucket',
        'accessKeyId': 'AKIATESTKEY',
        'secretAccessKey': 'test-secret',
        'region': 'us-east-1'
    }


@pytest.fixture
def aws_clients():
    """
    Replace boto3.client with mocks: one for S3 and one for bedrock-runtime.

    boto3.client is patched once because both services import the same module.
    """
    clients = SimpleNamespace(s3=MagicMock(name='s3'), bedrock=MagicMock(name='bedrock-runtime'))
    clients.s3.list_objects_v2.return_value = {'IsTruncated': False}
    clients.s3.delete_objects.return_value = {}

    def make_client(service_name, *args, **kwargs):
        return clients.bedrock if service_name == 'bedrock-runtime' else clients.s3

    with patch('boto3.client', side_effect=make_client) as factory:
        clients.factory = factory
        yield clients


@pytest.fixture
def model_reply(aws_clients):
    """Set the text the mocked Bedrock model replies with."""
    def set_reply(text):
        aws_clients.bedrock.converse.return_value = bedrock_reply(text)
    return set_reply


def last_prompt(bedrock_client):
    """Prompt text of the most recent converse call."""
    messages = bedrock_client.converse.call_args.kwargs['messages']
    return messages[0]['content'][0]['text']
