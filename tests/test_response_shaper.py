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
"""Tests for the response shaper."""

import base64
import os
import pytest
from gpt_image_mcp_server.models.common import OutputArtifact
from gpt_image_mcp_server.services.response_shaper import ResponseShaper
from io import BytesIO
from PIL import Image
from unittest.mock import patch


class TestResponseShaperInit:
    """Tests for ResponseShaper construction."""

    def test_persist_requires_output_dir(self):
        """Test that persistence without a directory is rejected."""
        with pytest.raises(ValueError, match='output directory is required'):
            ResponseShaper(output_dir=None, persist=True)

    def test_inline_needs_no_output_dir(self):
        """Test that the inline configuration needs no directory."""
        shaper = ResponseShaper(output_dir=None, persist=False, preview=False)

        assert shaper.output_dir is None


class TestSaveImage:
    """Tests for ResponseShaper.save_image."""

    def test_timestamped_filename(self, temp_workspace_dir, provider_image_bytes):
        """Test that files are named <prefix>_<epoch-ms>.png."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir)

        with patch('gpt_image_mcp_server.services.response_shaper.time.time', return_value=1700000000.5):
            path = shaper.save_image(provider_image_bytes, 'generated')

        assert path == os.path.join(temp_workspace_dir, 'generated_1700000000500.png')
        assert os.path.isabs(path)
        with open(path, 'rb') as f:
            assert f.read() == provider_image_bytes

    def test_same_millisecond_gets_unique_names(self, temp_workspace_dir):
        """Test that saves within one millisecond never overwrite each other."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir)

        with patch('gpt_image_mcp_server.services.response_shaper.time.time', return_value=1700000000.0):
            paths = [shaper.save_image(bytes([i]), 'edited') for i in range(3)]

        assert [os.path.basename(p) for p in paths] == [
            'edited_1700000000000.png',
            'edited_1700000000000_1.png',
            'edited_1700000000000_2.png',
        ]
        for i, path in enumerate(paths):
            with open(path, 'rb') as f:
                assert f.read() == bytes([i])

    def test_creates_missing_directory(self, tmp_path, provider_image_bytes):
        """Test that the output directory is created if absent."""
        output_dir = tmp_path / 'nested' / 'images'
        shaper = ResponseShaper(output_dir=str(output_dir))

        path = shaper.save_image(provider_image_bytes, 'generated')

        assert output_dir.is_dir()
        assert os.path.dirname(path) == str(output_dir)


class TestToContent:
    """Tests for ResponseShaper.to_content."""

    def test_path_and_preview(self):
        """Test content for the persisting variant."""
        artifact = OutputArtifact(image=b'full', path='/images/generated_1.png', preview=b'small')

        content = ResponseShaper.to_content(artifact)

        assert [part.type for part in content] == ['text', 'image']
        assert content[0].text == '/images/generated_1.png'
        assert content[1].mimeType == 'image/png'
        assert base64.b64decode(content[1].data) == b'small'

    def test_inline_full_image(self):
        """Test content for the inline variant."""
        content = ResponseShaper.to_content(OutputArtifact(image=b'full'))

        assert len(content) == 1
        assert content[0].type == 'image'
        assert content[0].mimeType == 'image/png'
        assert base64.b64decode(content[0].data) == b'full'


class TestShape:
    """Tests for ResponseShaper.shape."""

    @pytest.mark.asyncio
    async def test_persist_with_preview(self, temp_workspace_dir, provider_image_bytes):
        """Test the file path plus 256x256 preview response."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir, persist=True, preview=True)

        content = await shaper.shape(provider_image_bytes, 'generated')

        assert [part.type for part in content] == ['text', 'image']
        saved_path = content[0].text
        assert os.path.dirname(saved_path) == temp_workspace_dir
        assert os.path.basename(saved_path).startswith('generated_')
        with open(saved_path, 'rb') as f:
            assert f.read() == provider_image_bytes

        preview = Image.open(BytesIO(base64.b64decode(content[1].data)))
        assert preview.size == (256, 256)

    @pytest.mark.asyncio
    async def test_inline_only(self, temp_workspace_dir, provider_image_bytes):
        """Test the inline variant writes nothing and returns the full image."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir, persist=False, preview=False)

        content = await shaper.shape(provider_image_bytes, 'generated')

        assert len(content) == 1
        assert base64.b64decode(content[0].data) == provider_image_bytes
        assert os.listdir(temp_workspace_dir) == []

    @pytest.mark.asyncio
    async def test_persist_without_preview(self, temp_workspace_dir, provider_image_bytes):
        """Test that the full image is returned inline when previews are disabled."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir, persist=True, preview=False)

        content = await shaper.shape(provider_image_bytes, 'edited')

        assert [part.type for part in content] == ['text', 'image']
        assert base64.b64decode(content[1].data) == provider_image_bytes

    @pytest.mark.asyncio
    async def test_preview_without_persist(self, provider_image_bytes):
        """Test preview-only output."""
        shaper = ResponseShaper(output_dir=None, persist=False, preview=True)

        content = await shaper.shape(provider_image_bytes, 'generated')

        assert len(content) == 1
        preview = Image.open(BytesIO(base64.b64decode(content[0].data)))
        assert preview.size == (256, 256)

    @pytest.mark.asyncio
    async def test_every_call_creates_one_new_file(self, temp_workspace_dir, provider_image_bytes):
        """Test that each successful shape adds exactly one new file."""
        shaper = ResponseShaper(output_dir=temp_workspace_dir)

        for expected_count in range(1, 4):
            await shaper.shape(provider_image_bytes, 'generated')
            assert len(os.listdir(temp_workspace_dir)) == expected_count
