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
"""Pydantic models for the generate_image and edit_image tool arguments.

Each model is the single source for both argument validation and the input
schema advertised to calling agents.
"""

from gpt_image_mcp_server.consts import MAX_PROMPT_LENGTH
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class ImageSize(str, Enum):
    """Output sizes accepted by the image generation endpoint.

    Attributes:
        SQUARE: 1024x1024 square format.
        LANDSCAPE: 1536x1024 landscape format.
        PORTRAIT: 1024x1536 portrait format.
        AUTO: Let the model choose a size from the prompt.
    """
    SQUARE = '1024x1024'
    LANDSCAPE = '1536x1024'
    PORTRAIT = '1024x1536'
    AUTO = 'auto'


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError('Prompt must contain non-whitespace text')
    return value


class GenerateImageParams(BaseModel):
    """Parameters for generating an image from a text prompt.

    Attributes:
        prompt: Text description of the image to generate.
        size: Output image size.
    """
    prompt: str = Field(
        ...,
        min_length=1,
        max_length=MAX_PROMPT_LENGTH,
        description='Text prompt describing the image to generate',
    )
    size: ImageSize = Field(
        default=ImageSize.AUTO,
        description='Output image size: "1024x1024", "1536x1024", "1024x1536" or "auto"',
    )

    @field_validator('prompt')
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Reject prompts made only of whitespace."""
        return _require_text(v)


class EditImageParams(BaseModel):
    """Parameters for editing an existing image with a text instruction.

    The image reference form is not tagged by the caller; it is detected when
    the reference is resolved (URL, then local file, then base64).

    Attributes:
        image: Local file path, http(s) URL, or base64-encoded image data.
        prompt: Text description of the edit to apply.
    """
    image: str = Field(
        ...,
        min_length=1,
        description='Image to edit: an absolute file path, an http(s) URL, or base64-encoded image data',
    )
    prompt: str = Field(
        ...,
        min_length=1,
        max_length=MAX_PROMPT_LENGTH,
        description='Text prompt describing the edit to apply',
    )

    @field_validator('prompt')
    @classmethod
    def validate_prompt(cls, v: str) -> str:
        """Reject prompts made only of whitespace."""
        return _require_text(v)

    @field_validator('image')
    @classmethod
    def validate_image(cls, v: str) -> str:
        """Strip surrounding whitespace from the image reference."""
        v = v.strip()
        if not v:
            raise ValueError('Image reference must not be blank')
        return v
