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
"""Response shaping for image tool results.

Persists full-resolution images, builds previews, and assembles the MCP
content parts returned to the caller. One shaper covers both the
file-plus-preview and inline-only response styles through configuration.
"""

import asyncio
import base64
import itertools
import os
import time
from gpt_image_mcp_server.consts import PREVIEW_SIZE, RESPONSE_MIME_TYPE
from gpt_image_mcp_server.models.common import OutputArtifact
from gpt_image_mcp_server.utils.image_utils import create_preview
from loguru import logger
from mcp import types
from typing import List, Optional, Union


ContentPart = Union[types.TextContent, types.ImageContent]


class ResponseShaper:
    """Turn decoded provider images into MCP content parts.

    Attributes:
        output_dir: Directory persisted images are written to.
        persist: Whether full-resolution images are written to disk.
        preview: Whether a fixed-size preview replaces the inline full image.
        preview_size: Edge length of the square preview canvas.
    """

    def __init__(
        self,
        output_dir: Optional[str] = None,
        persist: bool = True,
        preview: bool = True,
        preview_size: int = PREVIEW_SIZE,
    ):
        """Initialize ResponseShaper.

        Args:
            output_dir: Directory for persisted images. Required when persist is True.
            persist: Write full-resolution images to output_dir.
            preview: Return a preview instead of the full image.
            preview_size: Edge length of the preview canvas in pixels.

        Raises:
            ValueError: If persistence is enabled without an output directory.
        """
        if persist and not output_dir:
            raise ValueError('An output directory is required when persistence is enabled')
        self.output_dir = os.path.abspath(output_dir) if output_dir else None
        self.persist = persist
        self.preview = preview
        self.preview_size = preview_size

    def save_image(self, image_data: bytes, filename_prefix: str) -> str:
        """Write image bytes to a new, uniquely named file.

        Files are named ``<prefix>_<epoch-ms>.png``. The file is created
        exclusively; if that name already exists, ``_1``, ``_2``, ... is
        appended until a free name is found, so earlier artifacts are never
        overwritten.

        Args:
            image_data: Full-resolution image bytes.
            filename_prefix: Prefix such as 'generated' or 'edited'.

        Returns:
            Absolute path of the written file.

        Raises:
            IOError: If the directory cannot be created or the file cannot be written.
        """
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise IOError(f'Failed to create output directory {self.output_dir}: {str(e)}')

        timestamp = int(time.time() * 1000)
        for attempt in itertools.count():
            suffix = f'_{attempt}' if attempt else ''
            image_path = os.path.join(self.output_dir, f'{filename_prefix}_{timestamp}{suffix}.png')
            try:
                with open(image_path, 'xb') as file:
                    file.write(image_data)
            except FileExistsError:
                continue
            except OSError as e:
                raise IOError(f'Failed to save image {image_path}: {str(e)}')
            logger.debug(f'Saved image to: {image_path}')
            return image_path

    def build_artifact(self, image_data: bytes, filename_prefix: str) -> OutputArtifact:
        """Persist and preview an image according to the shaper configuration.

        Args:
            image_data: Full-resolution image bytes.
            filename_prefix: Prefix for the persisted filename.

        Returns:
            OutputArtifact with the optional path and preview filled in.
        """
        path = self.save_image(image_data, filename_prefix) if self.persist else None
        preview = create_preview(image_data, self.preview_size) if self.preview else None
        return OutputArtifact(image=image_data, path=path, preview=preview)

    @staticmethod
    def to_content(artifact: OutputArtifact) -> List[ContentPart]:
        """Assemble MCP content parts for an artifact.

        The text part (file path) comes first when present, followed by one
        image part carrying the preview if there is one, else the full image.
        Image parts are always tagged image/png.

        Args:
            artifact: The shaped output.

        Returns:
            List of content parts.
        """
        content: List[ContentPart] = []
        if artifact.path:
            content.append(
                types.TextContent(type='text', text=artifact.path, mimeType=RESPONSE_MIME_TYPE)
            )
        image_bytes = artifact.preview if artifact.preview is not None else artifact.image
        content.append(
            types.ImageContent(
                type='image',
                data=base64.b64encode(image_bytes).decode('utf-8'),
                mimeType=RESPONSE_MIME_TYPE,
            )
        )
        return content

    async def shape(self, image_data: bytes, filename_prefix: str) -> List[ContentPart]:
        """Build the content parts for a successful operation.

        Disk writes and resizing run in a worker thread.

        Args:
            image_data: Full-resolution image bytes.
            filename_prefix: Prefix for the persisted filename.

        Returns:
            List of content parts for the tool response.
        """
        artifact = await asyncio.to_thread(self.build_artifact, image_data, filename_prefix)
        if artifact.path:
            logger.info(f'Image saved to: {artifact.path}')
        return self.to_content(artifact)
