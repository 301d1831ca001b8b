"""
Payments boundary: the external payment call, balance query and username registry.

The dialogue only sees the PaymentGateway protocol; Web3PaymentGateway is the
on-chain implementation used by the API server.
"""

from backend_quickpay.payments.gateway import (
    BalanceResult,
    PaymentGateway,
    PaymentResult,
)
from backend_quickpay.payments.registry import UsernameRegistry

__all__ = [
    "BalanceResult",
    "PaymentGateway",
    "PaymentResult",
    "UsernameRegistry",
]
