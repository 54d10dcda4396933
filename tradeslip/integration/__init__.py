"""
Async integration layer (chain client protocol and session)
"""

from .session import BalanceQuery, ChainClient, SubmissionResult, TradeSlipSession, balance_queries

__all__ = [
    "BalanceQuery",
    "ChainClient",
    "SubmissionResult",
    "TradeSlipSession",
    "balance_queries",
]
