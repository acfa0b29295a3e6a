# Copyright gpt-image-mcp-server contributors. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for the OpenAI common utilities."""

import base64
import httpx
import openai
import pytest
from gpt_image_mcp_server.consts import EDIT_IMAGE_TOOL, GENERATE_IMAGE_TOOL
from gpt_image_mcp_server.services.openai_common import (
    ProviderAPIError,
    classify_openai_error,
    create_openai_client,
    invoke_images_api,
)
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock


REQUEST = httpx.Request('POST', 'https://api.openai.com/v1/images/generations')


def status_error(error_class, status_code, message='provider said no'):
    """Build an OpenAI status error with a real httpx response."""
    return error_class(
        message=message,
        response=httpx.Response(status_code, request=REQUEST),
        body=None,
    )


class TestCreateOpenAIClient:
    """Tests for create_openai_client."""

    def test_client_configuration(self):
        """Test that retries are disabled and the timeout is explicit."""
        client = create_openai_client('sk-test', timeout=45)

        assert client.api_key == 'sk-test'
        assert client.max_retries == 0
        assert client.timeout.read == 45
        assert client.timeout.connect == 10


class TestClassifyOpenAIError:
    """Tests for classify_openai_error."""

    @pytest.mark.parametrize(
        'error,expected_code,retryable',
        [
            (status_error(openai.RateLimitError, 429), 'RateLimited', True),
            (status_error(openai.AuthenticationError, 401), 'AuthenticationFailed', False),
            (status_error(openai.PermissionDeniedError, 403), 'PermissionDenied', False),
            (status_error(openai.BadRequestError, 400), 'InvalidRequest', False),
            (status_error(openai.InternalServerError, 500), 'ServiceError', True),
            (status_error(openai.UnprocessableEntityError, 422), 'HTTP422', False),
        ],
    )
    def test_status_errors(self, error, expected_code, retryable):
        """Test classification of HTTP status errors."""
        classified = classify_openai_error(error)

        assert isinstance(classified, ProviderAPIError)
        assert classified.error_code == expected_code
        assert classified.retryable is retryable
        assert 'provider said no' in classified.message

    def test_timeout(self):
        """Test that timeouts are classified before generic connection errors."""
        classified = classify_openai_error(openai.APITimeoutError(request=REQUEST))

        assert classified.error_code == 'Timeout'
        assert classified.retryable is True

    def test_connection_error(self):
        """Test classification of connection failures."""
        classified = classify_openai_error(
            openai.APIConnectionError(message='network down', request=REQUEST)
        )

        assert classified.error_code == 'ConnectionFailed'
        assert 'network down' in classified.message

    def test_unexpected_error(self):
        """Test the catch-all classification."""
        classified = classify_openai_error(openai.OpenAIError('something odd'))

        assert classified.error_code == 'UnexpectedError'
        assert 'something odd' in classified.message


class TestInvokeImagesApi:
    """Tests for invoke_images_api."""

    @pytest.mark.asyncio
    async def test_generate_success(self, mock_openai_client, provider_image_bytes):
        """Test a successful generate call returns decoded bytes."""
        request_body = {'model': 'gpt-image-1', 'prompt': 'a lake', 'n': 1, 'size': 'auto'}

        image_data = await invoke_images_api(GENERATE_IMAGE_TOOL, request_body, mock_openai_client)

        assert image_data == provider_image_bytes
        mock_openai_client.images.generate.assert_awaited_once_with(**request_body)
        mock_openai_client.images.edit.assert_not_called()

    @pytest.mark.asyncio
    async def test_edit_routes_to_edit_endpoint(self, mock_openai_client, provider_image_bytes):
        """Test that the edit operation calls images.edit."""
        request_body = {'model': 'gpt-image-1', 'prompt': 'add a hat', 'n': 1}

        image_data = await invoke_images_api(EDIT_IMAGE_TOOL, request_body, mock_openai_client)

        assert image_data == provider_image_bytes
        mock_openai_client.images.edit.assert_awaited_once_with(**request_body)

    @pytest.mark.asyncio
    async def test_unknown_operation(self, mock_openai_client):
        """Test that an unsupported operation is rejected."""
        with pytest.raises(ValueError, match='Unsupported images operation'):
            await invoke_images_api('variation', {}, mock_openai_client)

    @pytest.mark.asyncio
    async def test_sdk_error_classified(self):
        """Test that SDK errors are re-raised as ProviderAPIError."""
        client = MagicMock()
        client.images.generate = AsyncMock(
            side_effect=status_error(openai.BadRequestError, 400, 'Your request was rejected')
        )

        with pytest.raises(ProviderAPIError) as exc_info:
            await invoke_images_api(GENERATE_IMAGE_TOOL, {'prompt': 'x'}, client)

        assert exc_info.value.error_code == 'InvalidRequest'
        assert 'Your request was rejected' in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'response',
        [
            SimpleNamespace(data=[]),
            SimpleNamespace(data=None),
            SimpleNamespace(data=[SimpleNamespace(b64_json=None)]),
        ],
    )
    async def test_missing_image_data(self, response):
        """Test that responses without image data are provider errors."""
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=response)

        with pytest.raises(ProviderAPIError, match='Response data is invalid') as exc_info:
            await invoke_images_api(GENERATE_IMAGE_TOOL, {'prompt': 'x'}, client)

        assert exc_info.value.error_code == 'InvalidResponse'

    @pytest.mark.asyncio
    async def test_undecodable_image_data(self):
        """Test that a corrupt base64 payload is a provider error."""
        client = MagicMock()
        client.images.generate = AsyncMock(
            return_value=SimpleNamespace(data=[SimpleNamespace(b64_json='%%%not-base64%%%')])
        )

        with pytest.raises(ProviderAPIError, match='Response data is invalid'):
            await invoke_images_api(GENERATE_IMAGE_TOOL, {'prompt': 'x'}, client)

    @pytest.mark.asyncio
    async def test_base64_round_trip(self):
        """Test that arbitrary provider bytes decode exactly."""
        payload = bytes(range(256))
        client = MagicMock()
        client.images.generate = AsyncMock(
            return_value=SimpleNamespace(
                data=[SimpleNamespace(b64_json=base64.b64encode(payload).decode('ascii'))]
            )
        )

        assert await invoke_images_api(GENERATE_IMAGE_TOOL, {'prompt': 'x'}, client) == payload
