"""
Wallet tool catalog.

Static descriptors for every operation the assistant can perform. The catalog
is serialized into the LLM request as the function-calling schema and is the
single source of truth for which tool names exist.
"""

from typing import Dict, List, Optional

from ...providers.llm.base import ToolDefinition, ToolParameter, ToolParameterType
from ..swap.constants import SWAPPABLE_SYMBOLS

CHECK_BALANCE = "checkBalance"
TRANSFER_SOL = "transferSol"
SWAP_TOKENS = "swapTokens"
CHECK_CRYPTO_PRICE = "checkCryptoPrice"
TRACK_CRYPTO_PRICE = "trackCryptoPrice"

PRICE_CONDITIONS = ["above", "below"]


SYSTEM_PROMPT = """You are SolMate, a Solana wallet assistant. You can help users:
- check the SOL and USDC balance of their wallet and its value in USD
- transfer SOL to another wallet address
- swap between SOL and USDC using Jupiter Exchange
- look up the current price of any cryptocurrency
- set up price alerts that trigger above or below a target price

When a user asks about their balance, holdings, or wallet, use the checkBalance function with their connected wallet address.
Never ask the user for a private key or seed phrase. Transfers and swaps are only prepared here; the user approves them in their wallet.
Format numbers nicely and keep answers short and clear."""


NATURAL_BALANCE_PROMPT = """You are a helpful wallet assistant providing clear and concise information about crypto balances. When presenting balances:

- Present information in a clear, professional manner
- Round numbers to 2 decimal places for better readability
- Include both token amounts and their USD values
- Summarize the total portfolio value

Example response:
"Your wallet contains 1.50 SOL ($150) and 50 USDC ($50). Total portfolio value: $200."

Keep responses brief and focused on the essential information while maintaining a professional tone."""


_SWAP_TOKEN_ENUM = list(SWAPPABLE_SYMBOLS)

TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name=CHECK_BALANCE,
        description="Check the SOL and USDC balance of a Solana wallet address and their value in USD",
        parameters=[
            ToolParameter(
                name="address",
                type=ToolParameterType.STRING,
                description="Solana wallet address to check balance for",
            ),
        ],
    ),
    ToolDefinition(
        name=TRANSFER_SOL,
        description="Initiate a SOL transfer to another wallet address",
        parameters=[
            ToolParameter(
                name="recipient",
                type=ToolParameterType.STRING,
                description="Solana wallet address to send SOL to",
            ),
            ToolParameter(
                name="amount",
                type=ToolParameterType.NUMBER,
                description="Amount of SOL to transfer",
            ),
        ],
    ),
    ToolDefinition(
        name=SWAP_TOKENS,
        description="Swap between SOL and USDC using Jupiter Exchange",
        parameters=[
            ToolParameter(
                name="inputToken",
                type=ToolParameterType.STRING,
                description="Input token (SOL or USDC)",
                enum=_SWAP_TOKEN_ENUM,
            ),
            ToolParameter(
                name="outputToken",
                type=ToolParameterType.STRING,
                description="Output token (SOL or USDC)",
                enum=_SWAP_TOKEN_ENUM,
            ),
            ToolParameter(
                name="amount",
                type=ToolParameterType.NUMBER,
                description="Amount of input token to swap",
            ),
        ],
    ),
    ToolDefinition(
        name=CHECK_CRYPTO_PRICE,
        description="Get the current price of any cryptocurrency",
        parameters=[
            ToolParameter(
                name="symbol",
                type=ToolParameterType.STRING,
                description="The cryptocurrency symbol (e.g., BTC, ETH, SOL)",
            ),
        ],
    ),
    ToolDefinition(
        name=TRACK_CRYPTO_PRICE,
        description="Set up real-time price tracking for a cryptocurrency",
        parameters=[
            ToolParameter(
                name="symbol",
                type=ToolParameterType.STRING,
                description="Cryptocurrency symbol to track (e.g., BTC, ETH, SOL)",
            ),
            ToolParameter(
                name="targetPrice",
                type=ToolParameterType.NUMBER,
                description="Target price for alerts",
            ),
            ToolParameter(
                name="condition",
                type=ToolParameterType.STRING,
                description="Price condition to monitor",
                enum=PRICE_CONDITIONS,
            ),
            ToolParameter(
                name="volatilityThreshold",
                type=ToolParameterType.NUMBER,
                description="Optional volatility threshold percentage",
                required=False,
            ),
        ],
    ),
]

_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in TOOL_DEFINITIONS}

TOOL_NAMES = tuple(_BY_NAME)


def get_tool_definition(name: str) -> Optional[ToolDefinition]:
    return _BY_NAME.get(name)


def to_openai_format() -> List[dict]:
    """Whole catalog as OpenAI / Workers AI function definitions."""
    return [tool.to_openai_format() for tool in TOOL_DEFINITIONS]


def to_anthropic_format() -> List[dict]:
    return [tool.to_anthropic_format() for tool in TOOL_DEFINITIONS]
