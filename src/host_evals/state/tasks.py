"""Scripted task catalog shown to the host operator.

Automatic tasks only need the operator (usually the host's LLM) to call
harness tools. Manual tasks need a human to act in the host UI, and the
stepper lists them after all automatic ones.
"""

from __future__ import annotations

from collections.abc import Iterable

from host_evals.models.constants import (
    TEST_COMPLETION_PROMPT_NAME,
    TEST_PROMPT_NAME,
    TEST_RESOURCE_URI,
)
from host_evals.models.entities import Task
from host_evals.models.enums import ToolName

__all__ = ["DEFAULT_TASKS", "USER_HANDLER_PROMPT", "order_tasks"]

TRIGGER = ToolName.TRIGGER_EVENT.value
CALLBACK = ToolName.CALLBACK.value

USER_HANDLER_PROMPT = (
    "This test does not require calling any tools, it needs to wait for user operations, "
    "and when the user answers 'continue', it will continue to evaluate."
)


def order_tasks(tasks: Iterable[Task]) -> tuple[Task, ...]:
    """Automatic tasks first, keeping the authored order within each group."""
    return tuple(sorted(tasks, key=lambda task: task.is_manual))


_TASKS = [
    Task(
        title="Root Directory List Test",
        description=(
            "Test whether the MCP server can correctly retrieve the root directory list "
            "of the client roots"
        ),
        protocol="roots/list",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'roots/list' event. This will test the "
            "client's ability to answer a roots/list request from the server.",
        ),
    ),
    Task(
        title="Resource List Changed Notification Test",
        description=(
            "Test the client's ability to receive and respond to resource list change "
            "notifications"
        ),
        protocol="notifications/resources/list_changed",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'notifications/resources/list_changed' event. "
            "This will test whether the client properly receives the notification and "
            "responds by calling the resources/list endpoint to refresh its resource cache.",
        ),
    ),
    Task(
        title="Prompt List Changed Notification Test",
        description=(
            "Test the client's ability to receive and respond to prompt list change notifications"
        ),
        protocol="notifications/prompts/list_changed",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'notifications/prompts/list_changed' event. "
            "This will test whether the client properly receives the notification and "
            "responds by calling the prompts/list endpoint to refresh its prompt cache.",
        ),
    ),
    Task(
        title="Tools List Changed Notification Test",
        description=(
            "Test the client's ability to receive and respond to tools list change notifications"
        ),
        protocol="notifications/tools/list_changed",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'notifications/tools/list_changed' event. "
            "This will test whether the client properly receives the notification and "
            "responds by calling the tools/list endpoint to refresh its tool cache.",
        ),
    ),
    Task(
        title="Ping Test",
        description="Test the client's ability to answer a ping from the MCP server",
        protocol="ping",
        instructions=(f"Use the {TRIGGER} tool to fire the 'ping' event.",),
    ),
    Task(
        title="Logging Set Level Test",
        description="Test the client's ability to set the logging level of the MCP server",
        protocol="logging/setLevel",
        instructions=(
            USER_HANDLER_PROMPT,
            "You must ask the user to change the logging level (e.g. 'info', 'warning', "
            "'error'). If the user inputs 'continue', you should skip this step.",
        ),
        is_manual=True,
    ),
    Task(
        title="Resource Management Test",
        description=(
            "Test whether the client can correctly retrieve and read resources from the MCP server"
        ),
        protocol="resources/list,resources/read",
        instructions=(
            USER_HANDLER_PROMPT,
            "You must ask the user to select and send a resource from the current host. "
            "Before the user sends a new message, you shouldn't do anything.",
            f"The required resource URI is: {TEST_RESOURCE_URI}.",
        ),
        is_manual=True,
    ),
    Task(
        title="Resource Subscribe Test",
        description=(
            "Test whether the client can correctly subscribe to resources from the MCP server"
        ),
        protocol="resources/subscribe,resources/unsubscribe",
        instructions=(
            USER_HANDLER_PROMPT,
            f"You must ask the user to subscribe to the resource uri '{TEST_RESOURCE_URI}' "
            "from the current host.",
            f"Then, when the user inputs 'continue', call the tool '{TRIGGER}' with event_type "
            "'notifications/resources/updated' to trigger the subscription event.",
            f"Then ask the user to unsubscribe from the resource uri '{TEST_RESOURCE_URI}' "
            "from the current host.",
            "Then, when the user inputs 'continue', continue to the next step.",
        ),
        is_manual=True,
    ),
    Task(
        title="Prompt Management Test",
        description=(
            "Test whether the client can correctly retrieve and use prompts from the MCP server"
        ),
        protocol="prompts/list,prompts/get",
        instructions=(
            USER_HANDLER_PROMPT,
            f"You must ask the user to send a prompt named '{TEST_PROMPT_NAME}' to the server.",
        ),
        is_manual=True,
    ),
    Task(
        title="Completion Management Test",
        description=(
            "Test whether the client can correctly retrieve and use completions from the "
            "MCP server"
        ),
        protocol="completion/complete",
        instructions=(
            USER_HANDLER_PROMPT,
            f"You must ask the user to send the prompt named '{TEST_COMPLETION_PROMPT_NAME}' "
            "to the server.",
            f"{TEST_COMPLETION_PROMPT_NAME} is a prompt with an argument the host can "
            "auto-complete, if the host supports completion.",
        ),
        is_manual=True,
    ),
    Task(
        title="Progress Notification Test",
        description="Test the client's ability to receive and display progress notifications",
        protocol="notifications/progress",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'notifications/progress' event. This will "
            "test whether the client can properly receive and display progress updates "
            "from the server.",
            "You must ask the user to input the progress message content (a float number, "
            "e.g. '0.52134213222121') to continue. If the user inputs 'continue', you "
            "should skip this step.",
            f"If the user inputs the progress message content, you should call the tool "
            f"'{CALLBACK}' with event_name 'notifications/progress' and the message content "
            "to confirm that the notification was received and processed.",
        ),
        is_manual=True,
    ),
    Task(
        title="Message Notification Test",
        description=(
            "Test the client's ability to receive and process server message notifications"
        ),
        protocol="notifications/message",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'notifications/message' event. This will "
            "test whether the client can properly receive and process server-sent log "
            "messages.",
            "You must ask the user to input the message content (a string, e.g. "
            "'3f1c2a9e-7d4b-4c0a-9a57-1f0e8b6d2c11') to continue. If the user inputs "
            "'continue', you should skip this step.",
            f"If the user inputs the message, you must call the tool '{CALLBACK}' with "
            "event_name 'notifications/message' and the message content to confirm that "
            "the notification was received and processed.",
        ),
        is_manual=True,
    ),
    Task(
        title="Sampling Create Message Test",
        description="Test the client's ability to create a message for the MCP server",
        protocol="sampling/createMessage",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'sampling/createMessage' event.",
            "Tell the user that if the client shows an approval prompt, they must accept "
            "the request of the host application.",
            "If nothing shows up, the user should input 'continue' to skip this step.",
        ),
        is_manual=True,
    ),
    Task(
        title="Elicitation Create Test",
        description="Test the client's ability to handle an elicitation from the MCP server",
        protocol="elicitation/create",
        instructions=(
            f"Use the {TRIGGER} tool to fire the 'elicitation/create' event.",
            "Tell the user that if the client shows a form, they must answer the request "
            "of the host application.",
            "If nothing shows up, the user should input 'continue' to skip this step.",
        ),
        is_manual=True,
    ),
]

DEFAULT_TASKS: tuple[Task, ...] = order_tasks(_TASKS)
