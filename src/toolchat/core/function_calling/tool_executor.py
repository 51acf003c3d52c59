"""Tool invoker for running model-requested tool calls."""

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .argument_coercer import CoercedArguments
from .result_processor import render_error, render_tool_output
from ...tools.types import ToolDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ToolExecutionResult:
    """Outcome of one tool invocation."""
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    success: bool = False
    output: str = ""
    error: Optional[str] = None
    execution_time_ms: Optional[int] = None
    inferred: bool = False


class ToolInvoker:
    """Runs tools with coerced arguments and renders their results as text."""

    async def invoke(self, descriptor: ToolDescriptor, arguments: CoercedArguments) -> ToolExecutionResult:
        """
        Invoke a tool.

        Plain functions run inline; coroutine functions are awaited. Missing
        required arguments and any exception raised by the tool become an
        ``Error executing function: ...`` output instead of propagating.

        Args:
            descriptor: Tool to run
            arguments: Coerced call arguments

        Returns:
            Execution result whose ``output`` is always set
        """
        kwargs = arguments.as_kwargs(descriptor)
        result = ToolExecutionResult(
            tool_name=descriptor.name,
            arguments=kwargs,
            inferred=bool(arguments.inferred),
        )

        if arguments.inferred:
            logger.warning(
                f"Invoking '{descriptor.name}' with heuristically inferred arguments: "
                f"{sorted(arguments.inferred)}"
            )

        missing = arguments.missing_required(descriptor)
        if missing:
            message = f"Missing required argument(s): {', '.join(missing)}"
            logger.info(f"Tool '{descriptor.name}' not invoked: {message}")
            result.error = message
            result.output = render_error(message)
            return result

        logger.debug(f"Invoking tool '{descriptor.name}' with {kwargs}")
        start_time = time.perf_counter()
        try:
            if descriptor.is_described:
                value = descriptor.function(**kwargs)
            else:
                value = descriptor.function(*kwargs.values())
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            result.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
            logger.info(f"Tool '{descriptor.name}' failed: {e}")
            result.error = str(e)
            result.output = render_error(e)
            return result

        result.execution_time_ms = int((time.perf_counter() - start_time) * 1000)
        result.success = True
        result.output = render_tool_output(value)
        logger.debug(f"Tool '{descriptor.name}' completed in {result.execution_time_ms}ms")
        return result
