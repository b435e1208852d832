"""
E-Wallet Client - Source Package

Client-side session and transaction orchestration for a remote
ledger service: authentication state, access gating, idempotent
deposit/withdraw/transfer submission and per-user ledger views.

PRINCIPLES:
1. The remote ledger is the source of truth
2. Nothing is mutated optimistically
3. Errors are normalized once, at the gateway
4. No automatic retries
"""

__version__ = "1.0.0"
__author__ = "E-Wallet Client Team"
