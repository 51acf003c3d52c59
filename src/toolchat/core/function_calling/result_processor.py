"""Render tool results for the conversation and for the user."""

import json
from typing import TYPE_CHECKING, Any, Dict, List, Union

from pydantic import BaseModel

if TYPE_CHECKING:
    from .tool_executor import ToolExecutionResult

SUCCESS_WITHOUT_RESULT = "Function executed successfully"
ERROR_PREFIX = "Error executing function: "


def render_tool_output(value: Any) -> str:
    """
    Render a tool's return value as text for the model.

    Args:
        value: Whatever the tool returned

    Returns:
        Text form of the value
    """
    if value is None:
        return SUCCESS_WITHOUT_RESULT
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def render_error(cause: Union[BaseException, str]) -> str:
    """Error text fed back to the model when a tool cannot run."""
    return f"{ERROR_PREFIX}{cause}"


def format_arguments(arguments: Union[Dict[str, Any], str]) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, ensure_ascii=False, default=str)


def call_record_text(name: str, arguments: Union[Dict[str, Any], str]) -> str:
    """Assistant text recording a call under the inline-marker convention."""
    return f"Calling function {name} with arguments: {format_arguments(arguments)}"


def tool_result_text(output: str) -> str:
    """User text carrying a tool result under the inline-marker convention."""
    return f"Function result: {output}"


def create_execution_summary_for_user(execution_results: List["ToolExecutionResult"]) -> str:
    """
    Create a short human-readable summary of tool executions.

    Args:
        execution_results: Results in invocation order

    Returns:
        Summary text, empty when no tools ran
    """
    if not execution_results:
        return ""

    successful = [r for r in execution_results if r.success]
    failed = [r for r in execution_results if not r.success]

    lines = [f"Executed {len(execution_results)} tool call(s): {len(successful)} succeeded, {len(failed)} failed"]
    for result in execution_results:
        status = "ok" if result.success else "failed"
        timing = f" ({result.execution_time_ms} ms)" if result.execution_time_ms is not None else ""
        lines.append(f"  {result.tool_name} [{status}]{timing}")
    return "\n".join(lines)
