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
"""Common models and enums shared by the image tools."""

from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Machine-readable error kinds reported across the protocol boundary.

    Attributes:
        VALIDATION_ERROR: Arguments were malformed or outside their enumeration.
        SOURCE_UNAVAILABLE: An edit image reference could not be fetched or read.
        INVALID_ENCODING: An inline image reference could not be decoded.
        GENERATION_FAILED: The provider failed to generate an image.
        EDIT_FAILED: The provider failed to edit an image.
        UNKNOWN_OPERATION: The caller named a tool that does not exist.
        INTERNAL_ERROR: Any other failure inside the server.
    """
    VALIDATION_ERROR = 'ValidationError'
    SOURCE_UNAVAILABLE = 'SourceUnavailable'
    INVALID_ENCODING = 'InvalidEncoding'
    GENERATION_FAILED = 'GenerationFailed'
    EDIT_FAILED = 'EditFailed'
    UNKNOWN_OPERATION = 'UnknownOperation'
    INTERNAL_ERROR = 'InternalError'


class ResolvedImage(BaseModel):
    """Raw image bytes resolved from a caller-supplied reference.

    Attributes:
        data: The decoded image bytes.
        content_type: Inferred mime type, or image/png when unknown.
        filename: Name used when uploading the bytes to the provider.
    """
    data: bytes
    content_type: str = 'image/png'
    filename: str = 'image.png'


class ImageOperationResult(BaseModel):
    """Outcome of a single generate or edit call against the provider.

    Provider and input failures are reported through ``status`` and ``kind``
    rather than raised, so the dispatcher decides how they cross the protocol
    boundary.

    Attributes:
        status: 'success' or 'error'.
        message: Message describing the result or error.
        kind: Error kind when status is 'error'.
        image: Full-resolution image bytes when status is 'success'.
        model_id: The provider model used.
        prompt: The prompt sent to the provider.
        metadata: Additional details about the call.
    """
    status: str
    message: str
    kind: Optional[ErrorKind] = None
    image: Optional[bytes] = None
    model_id: str
    prompt: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """Whether the call produced an image."""
        return self.status == 'success' and self.image is not None


class OutputArtifact(BaseModel):
    """Result of shaping a successful operation for the caller.

    Attributes:
        image: Full-resolution image bytes.
        path: Absolute path of the persisted file, if persistence is enabled.
        preview: PNG-encoded preview bytes, if previews are enabled.
    """
    image: bytes
    path: Optional[str] = None
    preview: Optional[bytes] = None
