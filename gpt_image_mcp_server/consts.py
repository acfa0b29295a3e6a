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
# Server identity
SERVER_NAME = 'mcp-gpt-image'
SERVER_VERSION = '1.0.0'

# Tool names
GENERATE_IMAGE_TOOL = 'generate_image'
EDIT_IMAGE_TOOL = 'edit_image'

# OpenAI Images API
DEFAULT_MODEL_ID = 'gpt-image-1'
DEFAULT_NUMBER_OF_IMAGES = 1
MAX_PROMPT_LENGTH = 32000

# OpenAI client configuration (no SDK retries; callers own retry policy)
OPENAI_MAX_RETRIES = 0
OPENAI_CONNECT_TIMEOUT = 10  # Seconds to wait for connection
OPENAI_REQUEST_TIMEOUT = 120  # Seconds to wait for response (large images can take over a minute)

# Image reference resolution
IMAGE_FETCH_TIMEOUT = 30  # Seconds allowed for downloading a remote image reference
DEFAULT_IMAGE_MIME_TYPE = 'image/png'
URL_SCHEMES = ('http://', 'https://')
FILE_URL_SCHEME = 'file://'
DATA_URL_PREFIX = 'data:'
IMAGE_FILE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.webp', '.gif')

# Response shaping
DEFAULT_IMAGES_DIR = 'temp'  # Relative to the process working directory
PREVIEW_SIZE = 256
GENERATED_FILENAME_PREFIX = 'generated'
EDITED_FILENAME_PREFIX = 'edited'
RESPONSE_MIME_TYPE = 'image/png'

# Logging
DEFAULT_LOG_LEVEL = 'WARNING'


PROMPT_INSTRUCTIONS = """
# GPT Image Prompting Best Practices

## General Guidelines

- Describe the image you want in full sentences. The model follows detailed natural
  language better than comma-separated keyword lists.
- Put the most important subject first and add details about setting, lighting,
  composition and style afterwards.
- Quote any text that should appear in the image exactly, e.g. a sign reading "OPEN".
- Name the medium explicitly ("photo", "watercolor illustration", "3D render",
  "flat vector icon") when the style matters.

## Choosing a Size

- `1024x1024`: square, fastest to generate.
- `1536x1024`: landscape.
- `1024x1536`: portrait.
- `auto`: lets the model pick a size from the prompt.

## Editing Images

- Describe the change, not the whole image: "add a red knitted hat to the dog".
- Mention what must stay the same when it matters: "keep the background unchanged".
- The `image` argument accepts an absolute file path, an http(s) URL, or a
  base64-encoded image (optionally as a `data:image/...;base64,` URL).

## Examples

- "A watercolor illustration of a red balloon drifting over a quiet harbor at dawn"
- "Studio product photo of a ceramic coffee mug on a walnut table, soft window light"
- Edit: "Replace the sky with a starry night, keep the buildings unchanged"
"""
