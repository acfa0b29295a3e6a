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
"""Error taxonomy for the image tool server."""

from gpt_image_mcp_server.models.common import ErrorKind


class ImageToolError(Exception):
    """Base exception for failures that map onto a stable error kind.

    Attributes:
        kind: The error kind reported to the calling agent.
        message: Human-readable error message.
    """
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str):
        """Initialize ImageToolError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)


class SourceUnavailableError(ImageToolError):
    """Raised when an image reference cannot be fetched or read."""
    kind = ErrorKind.SOURCE_UNAVAILABLE


class InvalidEncodingError(ImageToolError):
    """Raised when an inline image reference is not valid base64."""
    kind = ErrorKind.INVALID_ENCODING


class StartupConfigurationError(Exception):
    """Raised when the server configuration is missing or invalid at startup."""
