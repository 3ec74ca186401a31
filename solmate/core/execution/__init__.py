"""
Settlement layer for pending wallet operations.

Usage:
    from solmate.core.execution import BrowserRelaySigner, SolanaSettlement

    signer = BrowserRelaySigner(relay, wallet_address)
    result = await settlement.settle_transfer(pending, signer)
"""

from .settlement import SettlementResult, SolanaSettlement
from .signer import BrowserRelaySigner, SigningRelay, SigningRequest, WalletSigner

__all__ = [
    "BrowserRelaySigner",
    "SettlementResult",
    "SigningRelay",
    "SigningRequest",
    "SolanaSettlement",
    "WalletSigner",
]
