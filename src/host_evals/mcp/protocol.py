"""Tool, resource and prompt definitions the harness advertises to the host."""

from __future__ import annotations

from typing import Any

from mcp import types

from host_evals.errors import UnknownPromptError
from host_evals.features.registry import FeatureRegistry
from host_evals.models.constants import (
    TEST_COMPLETION_PROMPT_NAME,
    TEST_PROMPT_NAME,
    TEST_RESOURCE_NAME,
    TEST_RESOURCE_URI,
)
from host_evals.models.enums import StepAction, ToolName

EMPTY_INPUT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}

TEST_GUIDE_DESCRIPTION = """
    Assessment task iteration tool that guides users to complete MCP protocol testing step by step.
    You must follow the instructions for each task and complete the specified operation before proceeding to the next task.
    After finishing the current task, use this tool to move to the next step.
    Before starting the assessment, you must call this tool with action 'reset' to reset the test state.
    After completing all tasks, you must call tool 'get_result' to get the test result.
    """

PROMPT_COMPLETION_VALUE = "example prompt completion value"
RESOURCE_COMPLETION_VALUE = "example resource completion value"


def guide_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "step": {
                "type": "integer",
                "description": "Test step number to execute, starting from 1, it means the first step",
                "minimum": 1,
                "default": 1,
            },
            "action": {
                "type": "string",
                "description": "Operation type: next (next step), reset (reset)",
                "enum": [action.value for action in StepAction],
                "default": StepAction.NEXT.value,
            },
        },
    }


def trigger_event_schema(registry: FeatureRegistry) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "event_type": {
                "type": "string",
                "description": "Type of event to trigger",
                "enum": list(registry.triggerable_events),
            },
        },
        "required": ["event_type"],
    }


def callback_schema(registry: FeatureRegistry) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "event_name": {
                "type": "string",
                "description": (
                    "Name of the event that was received "
                    "(e.g., 'notifications/progress', 'notifications/message')"
                ),
                "enum": sorted(registry.message_content),
            },
            "message": {
                "type": "string",
                "description": "The value the user read from the host, passed through unchanged",
            },
        },
        "required": ["event_name"],
    }


def tool_definitions(registry: FeatureRegistry) -> dict[str, tuple[str, dict[str, Any]]]:
    """Tool name -> (description, input schema), in the order tools are listed."""
    return {
        ToolName.TEST_GUIDE.value: (TEST_GUIDE_DESCRIPTION, guide_schema()),
        ToolName.TEST_TOOL_CALL.value: (
            "Test tool_call invocation tool",
            {
                "type": "object",
                "properties": {
                    "tool_name": {"type": "string", "description": "Name of the tool to call"},
                },
            },
        ),
        ToolName.TRIGGER_EVENT.value: (
            "Trigger an event and track whether the corresponding callback method is executed",
            trigger_event_schema(registry),
        ),
        ToolName.CALLBACK.value: (
            "Callback tool to confirm that a notification event has been received and "
            "processed by the client",
            callback_schema(registry),
        ),
        ToolName.GET_RESULT.value: (
            "Get the test results showing which MCP features have passed and which have "
            "failed. This tool should be called after all tasks are completed.",
            EMPTY_INPUT_SCHEMA,
        ),
    }


def harness_resource() -> types.Resource:
    return types.Resource(
        uri=TEST_RESOURCE_URI,  # type: ignore[arg-type]
        name=TEST_RESOURCE_NAME,
        description="A plain text resource used to verify resource reads and subscriptions",
        mimeType="text/plain",
    )


def prompt_definitions() -> list[types.Prompt]:
    return [
        types.Prompt(
            name=TEST_PROMPT_NAME,
            description="test prompt for MCP functionality testing",
        ),
        types.Prompt(
            name=TEST_COMPLETION_PROMPT_NAME,
            description="test completion for MCP functionality testing",
            arguments=[
                types.PromptArgument(
                    name="prompt",
                    description="test prompt for MCP functionality testing",
                    required=True,
                ),
            ],
        ),
    ]


def render_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
    """Build the prompts/get result for one of the harness prompts.

    Raises:
        UnknownPromptError: If ``name`` is not a harness prompt.
    """
    if name == TEST_PROMPT_NAME:
        description = "MCP functionality test prompt"
        text = "test is passed,continue test"
    elif name == TEST_COMPLETION_PROMPT_NAME:
        description = "MCP functionality test completion"
        text = f"continue test, with user input prompt: {(arguments or {}).get('prompt', '')}"
    else:
        raise UnknownPromptError(name)
    return types.GetPromptResult(
        description=description,
        messages=[
            types.PromptMessage(
                role="user",
                content=types.TextContent(type="text", text=text),
            ),
        ],
    )


def completion_for(ref: Any) -> types.Completion:
    """Fixed completion values for prompt and resource references."""
    if isinstance(ref, types.PromptReference):
        return types.Completion(values=[PROMPT_COMPLETION_VALUE], total=1, hasMore=False)
    return types.Completion(values=[RESOURCE_COMPLETION_VALUE], total=1, hasMore=False)
