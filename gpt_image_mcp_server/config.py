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
"""Server configuration loaded from the environment at startup."""

import os
from gpt_image_mcp_server.consts import (
    DEFAULT_IMAGES_DIR,
    DEFAULT_MODEL_ID,
    IMAGE_FETCH_TIMEOUT,
    OPENAI_REQUEST_TIMEOUT,
    PREVIEW_SIZE,
)
from gpt_image_mcp_server.errors import StartupConfigurationError
from loguru import logger
from pydantic import BaseModel, Field, ValidationError
from typing import Mapping, Optional


class ServerConfig(BaseModel):
    """Resolved server configuration.

    Attributes:
        api_key: OpenAI API key.
        images_dir: Absolute directory persisted images are written to.
        model_id: OpenAI image model.
        persist_images: Write full-resolution images to images_dir.
        create_preview: Return a fixed-size preview instead of the full image.
        preview_size: Edge length of the preview canvas in pixels.
        request_timeout: Read timeout for OpenAI calls, in seconds.
        fetch_timeout: Timeout for downloading URL image references, in seconds.
    """
    api_key: str = Field(..., min_length=1, repr=False)
    images_dir: str
    model_id: str = DEFAULT_MODEL_ID
    persist_images: bool = True
    create_preview: bool = True
    preview_size: int = Field(default=PREVIEW_SIZE, gt=0)
    request_timeout: float = Field(default=OPENAI_REQUEST_TIMEOUT, gt=0)
    fetch_timeout: float = Field(default=IMAGE_FETCH_TIMEOUT, gt=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """Build the configuration from environment variables.

        Recognized variables: OPENAI_API_KEY (required), IMAGES_DIR,
        OPENAI_IMAGE_MODEL, IMAGE_PERSIST, IMAGE_PREVIEW, OPENAI_TIMEOUT and
        IMAGE_FETCH_TIMEOUT.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            The validated configuration.

        Raises:
            StartupConfigurationError: If the API key is missing or a value is invalid.
        """
        if environ is None:
            environ = os.environ

        if not environ.get('OPENAI_API_KEY'):
            raise StartupConfigurationError('OPENAI_API_KEY environment variable is not set')

        images_dir = environ.get('IMAGES_DIR') or os.path.join(os.getcwd(), DEFAULT_IMAGES_DIR)
        values = {
            'api_key': environ['OPENAI_API_KEY'],
            'images_dir': os.path.abspath(os.path.expanduser(images_dir)),
        }
        optional = {
            'model_id': 'OPENAI_IMAGE_MODEL',
            'persist_images': 'IMAGE_PERSIST',
            'create_preview': 'IMAGE_PREVIEW',
            'request_timeout': 'OPENAI_TIMEOUT',
            'fetch_timeout': 'IMAGE_FETCH_TIMEOUT',
        }
        for field_name, env_name in optional.items():
            if environ.get(env_name):
                values[field_name] = environ[env_name]

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            details = '; '.join(
                f'{".".join(str(part) for part in err["loc"])}: {err["msg"]}' for err in e.errors()
            )
            raise StartupConfigurationError(f'Invalid server configuration: {details}')

    def ensure_images_dir(self) -> None:
        """Create the images directory when persistence is enabled.

        Raises:
            StartupConfigurationError: If the directory cannot be created.
        """
        if not self.persist_images:
            return
        try:
            os.makedirs(self.images_dir, exist_ok=True)
        except OSError as e:
            raise StartupConfigurationError(
                f'Failed to create images directory {self.images_dir}: {str(e)}'
            )
        logger.debug(f'Using images directory: {self.images_dir}')
