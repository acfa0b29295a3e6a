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
"""Service implementation for GPT Image generation and editing.

Both operations make a single provider attempt and report failures through
ImageOperationResult instead of raising.
"""

import httpx
from gpt_image_mcp_server.consts import (
    DEFAULT_MODEL_ID,
    DEFAULT_NUMBER_OF_IMAGES,
    EDIT_IMAGE_TOOL,
    GENERATE_IMAGE_TOOL,
)
from gpt_image_mcp_server.errors import ImageToolError
from gpt_image_mcp_server.models.common import (
    ErrorKind,
    ImageOperationResult,
    ResolvedImage,
)
from gpt_image_mcp_server.models.image_models import EditImageParams, GenerateImageParams
from gpt_image_mcp_server.services.openai_common import ProviderAPIError, invoke_images_api
from gpt_image_mcp_server.utils.image_utils import resolve_image_reference
from loguru import logger
from openai import AsyncOpenAI
from typing import Any, Dict


def build_generate_request(
    params: GenerateImageParams, model_id: str = DEFAULT_MODEL_ID
) -> Dict[str, Any]:
    """Build the images.generate keyword arguments.

    Args:
        params: Validated generation parameters.
        model_id: Provider model to use.

    Returns:
        Dictionary of SDK call arguments.
    """
    return {
        'model': model_id,
        'prompt': params.prompt,
        'n': DEFAULT_NUMBER_OF_IMAGES,
        'size': params.size.value,
    }


def build_edit_request(
    params: EditImageParams, source: ResolvedImage, model_id: str = DEFAULT_MODEL_ID
) -> Dict[str, Any]:
    """Build the images.edit keyword arguments.

    The resolved bytes are sent as a (filename, content, content_type) file
    tuple so no temporary file is needed.

    Args:
        params: Validated edit parameters.
        source: Resolved source image.
        model_id: Provider model to use.

    Returns:
        Dictionary of SDK call arguments.
    """
    return {
        'model': model_id,
        'image': (source.filename, source.data, source.content_type),
        'prompt': params.prompt,
        'n': DEFAULT_NUMBER_OF_IMAGES,
    }


async def generate_image(
    params: GenerateImageParams,
    openai_client: AsyncOpenAI,
    model_id: str = DEFAULT_MODEL_ID,
) -> ImageOperationResult:
    """Generate one image from a text prompt.

    Workflow:
    1. Build the API request from validated parameters
    2. Invoke the images.generate endpoint once
    3. Decode the returned base64 image

    Args:
        params: Validated generation parameters.
        openai_client: AsyncOpenAI client.
        model_id: Provider model to use.

    Returns:
        ImageOperationResult with the image bytes, or a GenerationFailed error.
    """
    logger.info(
        f'Generating image with size: {params.size.value}',
        extra={'model': model_id, 'size': params.size.value, 'prompt_length': len(params.prompt)},
    )

    request_body = build_generate_request(params, model_id)
    try:
        image_data = await invoke_images_api(GENERATE_IMAGE_TOOL, request_body, openai_client)
    except ProviderAPIError as e:
        logger.error(f'Image generation failed: {e.message}')
        return ImageOperationResult(
            status='error',
            message=f'Image generation failed: {e.message}',
            kind=ErrorKind.GENERATION_FAILED,
            model_id=model_id,
            prompt=params.prompt,
            metadata={'error_code': e.error_code, 'retryable': e.retryable},
        )

    return ImageOperationResult(
        status='success',
        message='Successfully generated 1 image',
        image=image_data,
        model_id=model_id,
        prompt=params.prompt,
        metadata={'size': params.size.value},
    )


async def edit_image(
    params: EditImageParams,
    openai_client: AsyncOpenAI,
    http_client: httpx.AsyncClient,
    model_id: str = DEFAULT_MODEL_ID,
) -> ImageOperationResult:
    """Edit an existing image according to a text instruction.

    Workflow:
    1. Resolve the image reference (URL, file, or base64) into bytes
    2. Invoke the images.edit endpoint once
    3. Decode the returned base64 image

    Resolution failures return before any provider call is made.

    Args:
        params: Validated edit parameters.
        openai_client: AsyncOpenAI client.
        http_client: Client used to download URL image references.
        model_id: Provider model to use.

    Returns:
        ImageOperationResult with the image bytes, or a SourceUnavailable,
        InvalidEncoding or EditFailed error.
    """
    logger.info(
        'Editing image',
        extra={'model': model_id, 'prompt_length': len(params.prompt)},
    )

    try:
        source = await resolve_image_reference(params.image, http_client)
    except ImageToolError as e:
        logger.error(f'Could not resolve image reference ({e.kind.value}): {e.message}')
        return ImageOperationResult(
            status='error',
            message=e.message,
            kind=e.kind,
            model_id=model_id,
            prompt=params.prompt,
        )

    request_body = build_edit_request(params, source, model_id)
    try:
        image_data = await invoke_images_api(EDIT_IMAGE_TOOL, request_body, openai_client)
    except ProviderAPIError as e:
        logger.error(f'Image editing failed: {e.message}')
        return ImageOperationResult(
            status='error',
            message=f'Image editing failed: {e.message}',
            kind=ErrorKind.EDIT_FAILED,
            model_id=model_id,
            prompt=params.prompt,
            metadata={'error_code': e.error_code, 'retryable': e.retryable},
        )

    return ImageOperationResult(
        status='success',
        message='Successfully edited image',
        image=image_data,
        model_id=model_id,
        prompt=params.prompt,
        metadata={'source_content_type': source.content_type, 'source_bytes': len(source.data)},
    )
