"""
Tool executor: validates and runs batches of tool calls.

Each call gets its own error boundary, so one failing call never aborts its
siblings. Results come back in input order. There are no retries here.
"""

import asyncio
import json
import logging
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel

from ...providers.llm.base import ToolCall
from ..errors import UnknownTool, ValidationError, WalletToolError, error_code_for
from .models import ToolCallResult
from .registry import ToolRegistry

ResolvedTools = Union[str, List[ToolCallResult]]


def encode_result(value: Any) -> str:
    """Handlers may return str, pydantic models or plain JSON-able values."""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return json.dumps(value.model_dump(by_alias=True, exclude_none=True))
    return json.dumps(value, default=str)


class ToolExecutor:
    """
    Executes tool calls requested by the LLM.

    Calls in a batch run concurrently; the result list is positional.
    """

    def __init__(self, registry: ToolRegistry, logger: Optional[logging.Logger] = None):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    async def execute_single(self, tool_call: ToolCall) -> ToolCallResult:
        tool = self.registry.get_tool(tool_call.name)
        if tool is None:
            error = UnknownTool(tool_call.name)
            self.logger.warning("Rejected unknown tool call: %s", tool_call.name)
            return self._error_result(tool_call.name, error)

        try:
            args = tool.validator(tool_call.arguments or {})
        except ValidationError as e:
            self.logger.info("Validation failed for %s: %s", tool_call.name, e.message)
            return self._error_result(tool_call.name, e)

        try:
            result = await tool.handler(args)
            return ToolCallResult(tool=tool_call.name, result=encode_result(result))
        except WalletToolError as e:
            self.logger.warning("Tool %s failed: %s", tool_call.name, e.message, exc_info=True)
            return self._error_result(tool_call.name, e)
        except Exception as e:
            self.logger.exception("Tool execution error for %s", tool_call.name)
            return self._error_result(tool_call.name, e)

    async def execute_batch(self, tool_calls: Iterable[ToolCall]) -> List[ToolCallResult]:
        calls = list(tool_calls)
        if not calls:
            return []
        return list(await asyncio.gather(*(self.execute_single(call) for call in calls)))

    @staticmethod
    def _error_result(tool: str, error: BaseException) -> ToolCallResult:
        message = str(error) or error.__class__.__name__
        return ToolCallResult(tool=tool, error=message, error_code=error_code_for(error))


def collapse_results(results: List[ToolCallResult]) -> ResolvedTools:
    """A lone success unwraps to its raw result; anything else stays structured."""
    if len(results) == 1 and results[0].ok:
        return results[0].result
    return results


async def resolve_tool_calls(executor: ToolExecutor, tool_calls: Iterable[ToolCall]) -> ResolvedTools:
    results = await executor.execute_batch(tool_calls)
    return collapse_results(results)
