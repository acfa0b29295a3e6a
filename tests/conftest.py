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
"""Test fixtures for the gpt-image-mcp-server tests."""

import base64
import pytest
from io import BytesIO
from PIL import Image
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock


def make_image_bytes(width=64, height=64, color='red', format='PNG'):
    """Create a small solid-color image and return its encoded bytes."""
    img = Image.new('RGB', (width, height), color=color)
    buffer = BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


def make_images_response(image_bytes):
    """Build an object shaped like an OpenAI ImagesResponse with one image."""
    return SimpleNamespace(
        data=[SimpleNamespace(b64_json=base64.b64encode(image_bytes).decode('utf-8'))]
    )


@pytest.fixture
def sample_text_prompt():
    """Fixture for a sample text prompt."""
    return 'a red balloon'


@pytest.fixture
def sample_png_bytes():
    """Fixture for a valid 64x64 PNG image."""
    return make_image_bytes()


@pytest.fixture
def sample_png_base64(sample_png_bytes):
    """Fixture for a valid PNG image encoded as base64."""
    return base64.b64encode(sample_png_bytes).decode('utf-8')


@pytest.fixture
def sample_png_file(tmp_path, sample_png_bytes):
    """Fixture for a PNG image written to a temporary file."""
    path = tmp_path / 'source.png'
    path.write_bytes(sample_png_bytes)
    return str(path)


@pytest.fixture
def temp_workspace_dir(tmp_path):
    """Fixture for a temporary images directory."""
    workspace = tmp_path / 'images'
    workspace.mkdir()
    return str(workspace)


@pytest.fixture
def provider_image_bytes():
    """Fixture for the image the mocked provider returns (landscape, 300x150)."""
    return make_image_bytes(width=300, height=150, color='blue')


@pytest.fixture
def mock_openai_client(provider_image_bytes):
    """Fixture for a mocked AsyncOpenAI client returning one image per call."""
    client = MagicMock()
    client.images.generate = AsyncMock(return_value=make_images_response(provider_image_bytes))
    client.images.edit = AsyncMock(return_value=make_images_response(provider_image_bytes))
    return client


@pytest.fixture
def mock_http_client():
    """Fixture for a mocked httpx.AsyncClient that fails if used."""
    client = MagicMock()
    client.get = AsyncMock(side_effect=AssertionError('unexpected network fetch'))
    return client
