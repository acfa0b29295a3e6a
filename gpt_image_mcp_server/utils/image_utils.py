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
"""Image processing utilities for reference resolution, decoding, and previews."""

import asyncio
import base64
import binascii
import httpx
import mimetypes
import os
from gpt_image_mcp_server.consts import (
    DATA_URL_PREFIX,
    DEFAULT_IMAGE_MIME_TYPE,
    FILE_URL_SCHEME,
    IMAGE_FILE_EXTENSIONS,
    PREVIEW_SIZE,
    URL_SCHEMES,
)
from gpt_image_mcp_server.errors import InvalidEncodingError, SourceUnavailableError
from gpt_image_mcp_server.models.common import ResolvedImage
from io import BytesIO
from loguru import logger
from PIL import Image, ImageOps
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname


_MIME_EXTENSIONS = {
    'image/png': 'png',
    'image/jpeg': 'jpg',
    'image/webp': 'webp',
    'image/gif': 'gif',
}


def guess_image_mime_type(image_data: bytes) -> Optional[str]:
    """Guess an image mime type from its leading magic bytes.

    Args:
        image_data: Raw image bytes.

    Returns:
        The detected mime type, or None if the format is not recognized.
    """
    if image_data.startswith(b'\x89PNG\r\n\x1a\n'):
        return 'image/png'
    if image_data.startswith(b'\xff\xd8\xff'):
        return 'image/jpeg'
    if image_data[:6] in (b'GIF87a', b'GIF89a'):
        return 'image/gif'
    if image_data[:4] == b'RIFF' and image_data[8:12] == b'WEBP':
        return 'image/webp'
    return None


def _upload_filename(content_type: str, stem: str = 'image') -> str:
    return f'{stem}.{_MIME_EXTENSIONS.get(content_type, "png")}'


def decode_base64_image(base64_str: str) -> bytes:
    """Decode a base64 string to image bytes.

    Whitespace inside the payload is ignored. Any other character outside the
    base64 alphabet, bad padding, or an empty result is rejected.

    Args:
        base64_str: Base64-encoded image string.

    Returns:
        Raw image bytes.

    Raises:
        InvalidEncodingError: If the string is not valid, non-empty base64.
    """
    payload = ''.join(base64_str.split())
    try:
        image_data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f'Failed to decode base64 image: {str(e)}')
    if not image_data:
        raise InvalidEncodingError('Failed to decode base64 image: payload is empty')
    return image_data


def _looks_like_path(reference: str) -> bool:
    return (
        '/' in reference
        or '\\' in reference
        or reference.startswith('~')
        or reference.lower().endswith(IMAGE_FILE_EXTENSIONS)
    )


async def fetch_image_url(url: str, http_client: httpx.AsyncClient) -> ResolvedImage:
    """Download an image from an http(s) URL.

    Args:
        url: The http or https URL to fetch.
        http_client: Client used for the download; its timeout applies.

    Returns:
        The downloaded image bytes and content type.

    Raises:
        SourceUnavailableError: If the request fails or returns a non-success status.
    """
    logger.debug(f'Fetching image from URL: {url}')
    try:
        response = await http_client.get(url, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise SourceUnavailableError(f'Failed to fetch image from {url}: {str(e)}')

    if not response.is_success:
        raise SourceUnavailableError(
            f'Failed to fetch image from {url}: HTTP {response.status_code}'
        )

    image_data = response.content
    header_type = response.headers.get('content-type', '').split(';')[0].strip().lower()
    if header_type.startswith('image/'):
        content_type = header_type
    else:
        content_type = (
            mimetypes.guess_type(urlparse(url).path)[0]
            or guess_image_mime_type(image_data)
            or DEFAULT_IMAGE_MIME_TYPE
        )

    stem = os.path.splitext(os.path.basename(urlparse(url).path))[0] or 'image'
    logger.info(f'Fetched {len(image_data)} bytes from URL', extra={'content_type': content_type})
    return ResolvedImage(
        data=image_data,
        content_type=content_type,
        filename=_upload_filename(content_type, stem),
    )


def read_image_file(file_path: str) -> ResolvedImage:
    """Read an image file from disk.

    Args:
        file_path: Path to the image file.

    Returns:
        The file bytes and content type inferred from the file extension.

    Raises:
        SourceUnavailableError: If the file does not exist or cannot be read.
    """
    if not os.path.isfile(file_path):
        raise SourceUnavailableError(f'Image file not found: {file_path}')

    try:
        with open(file_path, 'rb') as image_file:
            image_data = image_file.read()
    except OSError as e:
        raise SourceUnavailableError(f'Failed to read image file {file_path}: {str(e)}')

    guessed_type = mimetypes.guess_type(file_path)[0]
    if guessed_type and guessed_type.startswith('image/'):
        content_type = guessed_type
    else:
        content_type = guess_image_mime_type(image_data) or DEFAULT_IMAGE_MIME_TYPE

    logger.debug(f'Read {len(image_data)} bytes from file: {file_path}')
    return ResolvedImage(
        data=image_data,
        content_type=content_type,
        filename=os.path.basename(file_path),
    )


def decode_image_reference(reference: str) -> ResolvedImage:
    """Decode an inline base64 image, optionally wrapped in a data URL.

    Args:
        reference: Raw base64 or a ``data:image/...;base64,`` URL.

    Returns:
        The decoded bytes and content type.

    Raises:
        InvalidEncodingError: If the payload cannot be decoded.
    """
    declared_type = None
    payload = reference
    if reference.startswith(DATA_URL_PREFIX):
        header, separator, payload = reference.partition(',')
        if not separator or ';base64' not in header:
            raise InvalidEncodingError('Data URL image references must be base64-encoded')
        declared_type = header[len(DATA_URL_PREFIX):].split(';')[0].lower() or None

    image_data = decode_base64_image(payload)
    content_type = declared_type or guess_image_mime_type(image_data) or DEFAULT_IMAGE_MIME_TYPE
    return ResolvedImage(
        data=image_data,
        content_type=content_type,
        filename=_upload_filename(content_type),
    )


async def resolve_image_reference(
    reference: str, http_client: httpx.AsyncClient
) -> ResolvedImage:
    """Resolve a caller-supplied image reference into raw bytes.

    The reference form is detected heuristically, in order:

    1. ``http://`` or ``https://`` prefix: fetched over the network.
    2. ``file://`` URL or an existing local file: read from disk.
    3. Anything else: decoded as base64 (or a base64 data URL).

    A reference that is not an existing file but looks like a path (separator,
    leading ``~`` or image extension) is reported as an unavailable source when
    it either fails to decode or decodes to bytes of no known image format. A
    data URL that fails to decode is always a bad encoding. A base64 payload
    that happens to name an existing file is read from disk; adversarial inputs
    are not disambiguated.

    No image structure validation is done here; the provider rejects corrupt
    images.

    Args:
        reference: File path, URL, or base64 image data.
        http_client: Client used for URL references.

    Returns:
        The resolved image bytes and content type.

    Raises:
        SourceUnavailableError: If a URL or file cannot be fetched or read.
        InvalidEncodingError: If an inline reference cannot be decoded.
    """
    if reference.lower().startswith(URL_SCHEMES):
        return await fetch_image_url(reference, http_client)

    if reference.lower().startswith(FILE_URL_SCHEME):
        file_path = url2pathname(urlparse(reference).path)
        return await asyncio.to_thread(read_image_file, file_path)

    file_path = os.path.expanduser(reference)
    if os.path.isfile(file_path):
        return await asyncio.to_thread(read_image_file, file_path)

    if reference.startswith(DATA_URL_PREFIX):
        return decode_image_reference(reference)

    try:
        resolved = decode_image_reference(reference)
    except InvalidEncodingError:
        if _looks_like_path(reference):
            raise SourceUnavailableError(f'Image file not found: {reference}')
        raise

    if _looks_like_path(reference) and guess_image_mime_type(resolved.data) is None:
        raise SourceUnavailableError(f'Image file not found: {reference}')
    return resolved


def create_preview(image_data: bytes, size: int = PREVIEW_SIZE) -> bytes:
    """Create a fixed-size PNG preview of an image.

    The image is scaled to fit within a ``size`` x ``size`` box with its aspect
    ratio preserved, then centered on a transparent canvas of exactly that size.

    Args:
        image_data: Raw image bytes in any format Pillow can open.
        size: Edge length of the square preview canvas in pixels.

    Returns:
        PNG-encoded preview image as bytes.

    Raises:
        ValueError: If the image data cannot be opened.
    """
    try:
        with Image.open(BytesIO(image_data)) as image:
            fitted = ImageOps.contain(image.convert('RGBA'), (size, size))
    except (OSError, Image.DecompressionBombError) as e:
        raise ValueError(f'Failed to open image data for preview: {str(e)}')

    canvas = Image.new('RGBA', (size, size), (255, 255, 255, 0))
    offset = ((size - fitted.width) // 2, (size - fitted.height) // 2)
    canvas.paste(fitted, offset)

    buffer = BytesIO()
    canvas.save(buffer, format='PNG')
    return buffer.getvalue()
