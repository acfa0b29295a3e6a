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
"""GPT Image MCP Server implementation."""

import asyncio
import httpx
import os
import sys
from gpt_image_mcp_server.config import ServerConfig
from gpt_image_mcp_server.consts import (
    DEFAULT_LOG_LEVEL,
    PROMPT_INSTRUCTIONS,
    SERVER_NAME,
    SERVER_VERSION,
)
from gpt_image_mcp_server.dispatcher import ImageToolDispatcher
from gpt_image_mcp_server.errors import StartupConfigurationError
from gpt_image_mcp_server.services.openai_common import create_openai_client
from gpt_image_mcp_server.services.response_shaper import ResponseShaper
from loguru import logger
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from typing import List


# Logging
logger.remove()
logger.add(sys.stderr, level=os.getenv('FASTMCP_LOG_LEVEL', DEFAULT_LOG_LEVEL))


SERVER_INSTRUCTIONS = f"""
# OpenAI Image Generation

This MCP server provides tools for generating and editing images with the OpenAI Images API.

## Available Tools

- **generate_image**: Generate an image from a text prompt.
- **edit_image**: Edit an existing image (file path, URL, or base64) with a text prompt.

Depending on configuration, results are returned as the saved file path plus a
256x256 preview, or as the full image inline.

{PROMPT_INSTRUCTIONS}
"""


def create_server(dispatcher: ImageToolDispatcher) -> Server:
    """Create the MCP server and register the tool handlers.

    The tools/call handler is registered directly so that McpError raised by
    the dispatcher is returned to the client as a JSON-RPC error rather than
    folded into a tool result.

    Args:
        dispatcher: Dispatcher that lists and executes tools.

    Returns:
        Configured low-level MCP server.
    """
    server = Server(SERVER_NAME, version=SERVER_VERSION, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return dispatcher.list_tools()

    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        content = await dispatcher.call_tool(request.params.name, request.params.arguments)
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.CallToolRequest] = handle_call_tool
    return server


async def serve(config: ServerConfig) -> None:
    """Serve the image tools over stdio until the client disconnects.

    Args:
        config: Validated server configuration.
    """
    openai_client = create_openai_client(config.api_key, timeout=config.request_timeout)
    shaper = ResponseShaper(
        output_dir=config.images_dir,
        persist=config.persist_images,
        preview=config.create_preview,
        preview_size=config.preview_size,
    )

    async with httpx.AsyncClient(timeout=config.fetch_timeout) as http_client:
        dispatcher = ImageToolDispatcher(
            openai_client=openai_client,
            http_client=http_client,
            shaper=shaper,
            model_id=config.model_id,
        )
        server = create_server(dispatcher)
        try:
            async with stdio_server() as (read_stream, write_stream):
                await server.run(read_stream, write_stream, server.create_initialization_options())
        finally:
            await openai_client.close()


def main():
    """Run the MCP server, exiting with status 1 on invalid configuration."""
    try:
        config = ServerConfig.from_env()
        config.ensure_images_dir()
    except StartupConfigurationError as e:
        logger.error(f'Startup failed: {str(e)}')
        sys.exit(1)

    logger.info(
        f'Starting {SERVER_NAME} MCP server',
        extra={'model': config.model_id, 'persist': config.persist_images},
    )
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info(f'{SERVER_NAME} MCP server stopped')


if __name__ == '__main__':
    main()
