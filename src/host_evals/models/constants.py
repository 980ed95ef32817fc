"""Constants for the harness.

This module defines harness-wide constants used across the codebase.
"""

SERVER_NAME = "mcp-host-evals"

# Timing defaults (seconds)
DEFAULT_PENDING_EVENT_TIMEOUT = 5.0
DEFAULT_CONFIRMATION_TIMEOUT = 300.0
"""How long a message-content value stays confirmable.

The operator has to read the value from the host UI and type it back,
so this window is much longer than the pending-event window.
"""

DEFAULT_HOST_REQUEST_TIMEOUT = 30.0

# HTTP transport defaults
DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 3000
MCP_ENDPOINT_PATH = "/mcp"
HEALTH_PATH = "/health"

# Fixtures exposed to the host
TEST_RESOURCE_URI = "file://test-resource/test-resource.txt"
TEST_RESOURCE_NAME = "Test Resource"
TEST_RESOURCE_TEXT = (
    "This is a test resource content. if you can see this message, "
    "it means the resource has been read successfully."
)
TEST_PROMPT_NAME = "test_prompt"
TEST_COMPLETION_PROMPT_NAME = "test_completion"
NOTIFICATION_LOGGER_NAME = "mcp-host-evals"
