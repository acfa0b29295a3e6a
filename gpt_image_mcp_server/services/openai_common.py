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
"""Common utilities for the OpenAI Images API.

This module provides client construction, API invocation with error
classification, and response payload decoding shared by the generate and
edit operations.
"""

import httpx
import openai
from gpt_image_mcp_server.consts import (
    EDIT_IMAGE_TOOL,
    GENERATE_IMAGE_TOOL,
    OPENAI_CONNECT_TIMEOUT,
    OPENAI_MAX_RETRIES,
    OPENAI_REQUEST_TIMEOUT,
)
from gpt_image_mcp_server.errors import InvalidEncodingError
from gpt_image_mcp_server.utils.image_utils import decode_base64_image
from loguru import logger
from openai import AsyncOpenAI
from typing import Any, Dict


class ProviderAPIError(Exception):
    """Base exception for OpenAI Images API errors.

    Attributes:
        error_code: Classified error code (e.g., 'RateLimited', 'InvalidRequest').
        message: Human-readable error message, including the provider's text.
        retryable: Whether a caller could reasonably retry the request.
    """
    def __init__(self, message: str, error_code: str = 'Unknown', retryable: bool = False):
        """Initialize ProviderAPIError.

        Args:
            message: Human-readable error message.
            error_code: Classified error code.
            retryable: Whether this error could succeed on retry.
        """
        self.error_code = error_code
        self.message = message
        self.retryable = retryable
        super().__init__(message)


def create_openai_client(
    api_key: str,
    timeout: float = OPENAI_REQUEST_TIMEOUT,
) -> AsyncOpenAI:
    """Create the async OpenAI client used for all image calls.

    Retries are disabled: every tool call makes exactly one provider attempt.
    ``OPENAI_BASE_URL`` and ``OPENAI_ORG_ID`` are honored by the SDK itself.

    Args:
        api_key: OpenAI API key.
        timeout: Read timeout in seconds for a single API call.

    Returns:
        Configured AsyncOpenAI client.
    """
    return AsyncOpenAI(
        api_key=api_key,
        timeout=httpx.Timeout(timeout, connect=OPENAI_CONNECT_TIMEOUT),
        max_retries=OPENAI_MAX_RETRIES,
    )


def classify_openai_error(error: Exception) -> ProviderAPIError:
    """Translate an OpenAI SDK exception into a ProviderAPIError.

    Args:
        error: The exception raised by the SDK.

    Returns:
        ProviderAPIError carrying a stable code and the provider's message.
    """
    provider_message = getattr(error, 'message', None) or str(error)

    if isinstance(error, openai.APITimeoutError):
        return ProviderAPIError(
            message=f'Request timed out: {provider_message}',
            error_code='Timeout',
            retryable=True,
        )
    if isinstance(error, openai.APIConnectionError):
        return ProviderAPIError(
            message=f'Could not connect to the OpenAI API: {provider_message}',
            error_code='ConnectionFailed',
            retryable=True,
        )
    if isinstance(error, openai.RateLimitError):
        return ProviderAPIError(
            message=f'Rate limit exceeded: {provider_message}',
            error_code='RateLimited',
            retryable=True,
        )
    if isinstance(error, openai.AuthenticationError):
        return ProviderAPIError(
            message=f'Authentication failed. Check OPENAI_API_KEY: {provider_message}',
            error_code='AuthenticationFailed',
            retryable=False,
        )
    if isinstance(error, openai.PermissionDeniedError):
        return ProviderAPIError(
            message=f'Permission denied. Check model access for your organization: {provider_message}',
            error_code='PermissionDenied',
            retryable=False,
        )
    if isinstance(error, openai.BadRequestError):
        return ProviderAPIError(
            message=f'Invalid request: {provider_message}',
            error_code='InvalidRequest',
            retryable=False,
        )
    if isinstance(error, openai.InternalServerError):
        return ProviderAPIError(
            message=f'OpenAI service error: {provider_message}',
            error_code='ServiceError',
            retryable=True,
        )
    if isinstance(error, openai.APIStatusError):
        return ProviderAPIError(
            message=f'API call failed with status {error.status_code}: {provider_message}',
            error_code=f'HTTP{error.status_code}',
            retryable=False,
        )
    return ProviderAPIError(
        message=f'Unexpected error: {provider_message}',
        error_code='UnexpectedError',
        retryable=False,
    )


async def invoke_images_api(
    operation: str,
    request_body: Dict[str, Any],
    openai_client: AsyncOpenAI,
) -> bytes:
    """Invoke an OpenAI Images endpoint and decode the single returned image.

    Args:
        operation: Either the generate_image or edit_image tool name.
        request_body: Keyword arguments for the SDK call.
        openai_client: AsyncOpenAI client.

    Returns:
        The decoded bytes of the first returned image.

    Raises:
        ProviderAPIError: On API failures or a response without image data.
    """
    if operation == GENERATE_IMAGE_TOOL:
        api_call = openai_client.images.generate
    elif operation == EDIT_IMAGE_TOOL:
        api_call = openai_client.images.edit
    else:
        raise ValueError(f'Unsupported images operation: {operation}')

    logger.debug(
        f'Invoking OpenAI images API for {operation}',
        extra={'operation': operation, 'request_keys': list(request_body.keys())},
    )

    try:
        logger.info(f'Sending {operation} request to model: {request_body.get("model")}')
        response = await api_call(**request_body)
    except openai.OpenAIError as e:
        classified = classify_openai_error(e)
        logger.error(f'OpenAI API error ({classified.error_code}): {classified.message}')
        raise classified

    data = getattr(response, 'data', None) or []
    b64_json = getattr(data[0], 'b64_json', None) if data else None
    if not b64_json:
        logger.error(f'OpenAI {operation} response did not include image data')
        raise ProviderAPIError(
            message='Response data is invalid: no base64 image returned',
            error_code='InvalidResponse',
            retryable=False,
        )

    try:
        image_data = decode_base64_image(b64_json)
    except InvalidEncodingError as e:
        raise ProviderAPIError(
            message=f'Response data is invalid: {e.message}',
            error_code='InvalidResponse',
            retryable=False,
        )

    logger.info(
        f'OpenAI {operation} call successful',
        extra={'operation': operation, 'image_bytes': len(image_data)},
    )
    return image_data
