import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ..core.tools.executor import ToolExecutor, collapse_results
from ..core.tools.registry import ToolRegistry
from ..dependencies import get_tool_executor, get_tool_registry
from ..providers.llm.base import ToolCall
from ..types import ExecuteToolsRequest, ExecuteToolsResponse

router = APIRouter(prefix="/tools")
_logger = logging.getLogger(__name__)


@router.get("")
async def list_tools(registry: ToolRegistry = Depends(get_tool_registry)) -> Dict[str, List[Dict[str, Any]]]:
    """Tool catalog in OpenAI function-calling format."""
    return {"tools": [definition.to_openai_format() for definition in registry.get_definitions()]}


@router.post("/execute")
async def execute_tools(
    request: ExecuteToolsRequest,
    executor: ToolExecutor = Depends(get_tool_executor),
) -> ExecuteToolsResponse:
    if not request.tool_calls:
        raise HTTPException(status_code=400, detail="tool_calls must not be empty")

    calls = [ToolCall(name=call.name, arguments=call.arguments) for call in request.tool_calls]
    results = await executor.execute_batch(calls)
    resolved = collapse_results(results)

    _logger.info(
        "Executed %d tool call(s), %d failed",
        len(results),
        sum(1 for result in results if not result.ok),
    )

    return ExecuteToolsResponse(
        resolved=resolved if isinstance(resolved, str) else [result.as_payload() for result in resolved],
        results=[result.model_dump(exclude_none=True) for result in results],
    )
