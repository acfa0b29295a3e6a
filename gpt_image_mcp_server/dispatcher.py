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
"""Tool dispatcher for the image MCP server.

Advertises the generate_image and edit_image tools, validates arguments,
routes calls to the image services, and translates every failure into a
single MCP error envelope.
"""

import httpx
from gpt_image_mcp_server.consts import (
    DEFAULT_MODEL_ID,
    EDITED_FILENAME_PREFIX,
    EDIT_IMAGE_TOOL,
    GENERATED_FILENAME_PREFIX,
    GENERATE_IMAGE_TOOL,
)
from gpt_image_mcp_server.models.common import ErrorKind, ImageOperationResult
from gpt_image_mcp_server.models.image_models import EditImageParams, GenerateImageParams
from gpt_image_mcp_server.services.image_service import edit_image, generate_image
from gpt_image_mcp_server.services.response_shaper import ContentPart, ResponseShaper
from loguru import logger
from mcp import types
from mcp.shared.exceptions import McpError
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError
from typing import Any, Dict, List, NamedTuple, Optional, Type


class ToolDefinition(NamedTuple):
    """Static description of one tool."""
    name: str
    description: str
    params_model: Type[BaseModel]
    filename_prefix: str


TOOL_DEFINITIONS = (
    ToolDefinition(
        name=GENERATE_IMAGE_TOOL,
        description='Generate an image from a text prompt',
        params_model=GenerateImageParams,
        filename_prefix=GENERATED_FILENAME_PREFIX,
    ),
    ToolDefinition(
        name=EDIT_IMAGE_TOOL,
        description='Edit an existing image (file path, URL, or base64) with a text prompt',
        params_model=EditImageParams,
        filename_prefix=EDITED_FILENAME_PREFIX,
    ),
)

TOOL_DESCRIPTORS = tuple(
    types.Tool(
        name=definition.name,
        description=definition.description,
        inputSchema=definition.params_model.model_json_schema(),
    )
    for definition in TOOL_DEFINITIONS
)

_ERROR_CODES = {
    ErrorKind.VALIDATION_ERROR: types.INVALID_PARAMS,
    ErrorKind.UNKNOWN_OPERATION: types.METHOD_NOT_FOUND,
}


def tool_error(kind: ErrorKind, message: str) -> McpError:
    """Build the MCP error for a failed tool call.

    Args:
        kind: The error kind; also reported in ``data.kind``.
        message: Human-readable detail.

    Returns:
        McpError with a JSON-RPC code derived from the kind.
    """
    return McpError(
        types.ErrorData(
            code=_ERROR_CODES.get(kind, types.INTERNAL_ERROR),
            message=f'{kind.value}: {message}',
            data={'kind': kind.value},
        )
    )


def format_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic ValidationError, naming each offending field."""
    return '; '.join(
        f'{".".join(str(part) for part in err["loc"]) or "arguments"}: {err["msg"]}'
        for err in error.errors()
    )


class ImageToolDispatcher:
    """Route tool calls by name to the image services.

    The dispatcher holds no per-call state; concurrent calls share only the
    clients and the shaper's output directory.
    """

    def __init__(
        self,
        openai_client: AsyncOpenAI,
        http_client: httpx.AsyncClient,
        shaper: ResponseShaper,
        model_id: str = DEFAULT_MODEL_ID,
    ):
        """Initialize ImageToolDispatcher.

        Args:
            openai_client: AsyncOpenAI client for provider calls.
            http_client: Client for downloading URL image references.
            shaper: Response shaper applied to successful results.
            model_id: OpenAI image model.
        """
        self.openai_client = openai_client
        self.http_client = http_client
        self.shaper = shaper
        self.model_id = model_id
        self._definitions = {definition.name: definition for definition in TOOL_DEFINITIONS}

    def list_tools(self) -> List[types.Tool]:
        """Return the tool descriptors in their advertised order."""
        return list(TOOL_DESCRIPTORS)

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[ContentPart]:
        """Validate and execute a tool call.

        Args:
            name: Tool name.
            arguments: Untyped argument map from the caller.

        Returns:
            Content parts for a successful call.

        Raises:
            McpError: For unknown tools, invalid arguments, and every
                operation or shaping failure.
        """
        logger.debug(f'MCP tool {name} called')

        definition = self._definitions.get(name)
        if definition is None:
            logger.error(f'Unknown tool requested: {name}')
            raise tool_error(ErrorKind.UNKNOWN_OPERATION, f'Unknown tool: {name}')

        try:
            params = definition.params_model.model_validate(arguments or {})
        except ValidationError as e:
            message = format_validation_error(e)
            logger.error(f'Invalid arguments for {name}: {message}')
            raise tool_error(ErrorKind.VALIDATION_ERROR, message)

        try:
            result = await self._run(name, params)
        except Exception as e:
            logger.exception(f'Unexpected error in {name}')
            raise tool_error(ErrorKind.INTERNAL_ERROR, f'{name} failed: {str(e)}')

        if not result.succeeded:
            logger.error(f'{name} returned error status: {result.message}')
            raise tool_error(result.kind or ErrorKind.INTERNAL_ERROR, result.message)

        try:
            return await self.shaper.shape(result.image, definition.filename_prefix)
        except Exception as e:
            logger.exception(f'Failed to build response for {name}')
            raise tool_error(ErrorKind.INTERNAL_ERROR, f'Failed to build response: {str(e)}')

    async def _run(self, name: str, params: BaseModel) -> ImageOperationResult:
        if name == GENERATE_IMAGE_TOOL:
            return await generate_image(params, self.openai_client, self.model_id)
        return await edit_image(params, self.openai_client, self.http_client, self.model_id)
