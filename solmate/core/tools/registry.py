"""
Tool registry: catalog name -> (definition, validator, handler).

Dispatch is a table lookup. Every catalog entry must have both a validator
and a handler; a gap is a programming error surfaced at construction time.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ...providers.llm.base import ToolDefinition
from ..operations import WalletOperations
from . import catalog
from .validation import (
    VALIDATORS,
    BalanceArgs,
    PriceArgs,
    SwapArgs,
    TrackArgs,
    TransferArgs,
)

Validator = Callable[[Any], Any]
Handler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class RegisteredTool:
    """A tool registered in the registry with its definition, validator and handler."""
    definition: ToolDefinition
    validator: Validator
    handler: Handler

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """
    Registry of wallet tools the LLM can call.

    Built from the static catalog plus a ``WalletOperations`` instance that
    supplies the handlers.
    """

    def __init__(self, operations: WalletOperations, logger: Optional[logging.Logger] = None):
        self.operations = operations
        self.logger = logger or logging.getLogger(__name__)
        self._tools: Dict[str, RegisteredTool] = {}
        self._register_default_tools()

    def register(self, definition: ToolDefinition, validator: Validator, handler: Handler) -> None:
        self._tools[definition.name] = RegisteredTool(
            definition=definition,
            validator=validator,
            handler=handler,
        )

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get_definitions(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self._tools.values()]

    def _handlers(self) -> Dict[str, Handler]:
        ops = self.operations

        async def check_balance(args: BalanceArgs) -> Any:
            return await ops.check_balance(args.address)

        async def transfer_sol(args: TransferArgs) -> Any:
            return await ops.transfer_sol(args.recipient, args.amount, args.network)

        async def swap_tokens(args: SwapArgs) -> Any:
            return await ops.swap_tokens(args.input_token, args.output_token, args.amount, args.base_amount)

        async def check_crypto_price(args: PriceArgs) -> Any:
            return await ops.check_crypto_price(args.symbol)

        async def track_crypto_price(args: TrackArgs) -> Any:
            return await ops.track_crypto_price(
                args.symbol,
                args.target_price,
                args.condition,
                args.volatility_threshold,
                args.email,
            )

        return {
            catalog.CHECK_BALANCE: check_balance,
            catalog.TRANSFER_SOL: transfer_sol,
            catalog.SWAP_TOKENS: swap_tokens,
            catalog.CHECK_CRYPTO_PRICE: check_crypto_price,
            catalog.TRACK_CRYPTO_PRICE: track_crypto_price,
        }

    def _register_default_tools(self) -> None:
        handlers = self._handlers()
        for definition in catalog.TOOL_DEFINITIONS:
            validator = VALIDATORS.get(definition.name)
            handler = handlers.get(definition.name)
            if validator is None or handler is None:
                raise RuntimeError(f"Catalog tool {definition.name} has no validator/handler pair")
            self.register(definition, validator, handler)
        self.logger.debug("Registered %d wallet tools", len(self._tools))
