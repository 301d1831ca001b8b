"""
On-chain PaymentGateway: username registry + payment contract via web3.py.

Sends native value to sendPaymentByUsername(username, purpose) signed with a
server-held key, then waits for the receipt. Every failure path, including a
receipt timeout, returns PaymentResult(success=False); nothing is retried.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from eth_account import Account
from web3 import Web3

from backend_quickpay.config import Settings
from backend_quickpay.core.exceptions import NotFoundError, RemoteServiceFailure
from backend_quickpay.payments.gateway import BalanceResult, PaymentResult
from backend_quickpay.payments.registry import UsernameRegistry
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

# Native-value payments only; tokens would need an ERC-20 path
PAYABLE_CURRENCIES = ("ETH", "MON")

REGISTRY_ABI: list[dict[str, Any]] = [
    {
        "inputs": [{"internalType": "string", "name": "username", "type": "string"}],
        "name": "getAddressByUsername",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]

QUICKPAY_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"internalType": "string", "name": "username", "type": "string"},
            {"internalType": "string", "name": "purpose", "type": "string"},
        ],
        "name": "sendPaymentByUsername",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]


class Web3PaymentGateway:
    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        registry_address: str,
        quickpay_address: str,
        *,
        chain_id: int,
        native_currency: str = "MON",
        receipt_timeout_sec: float = 120.0,
        registry: UsernameRegistry | None = None,
    ) -> None:
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
        self.account = Account.from_key(private_key)
        self.chain_id = chain_id
        self.native_currency = native_currency
        self.receipt_timeout_sec = receipt_timeout_sec
        self.registry_contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(registry_address),
            abi=REGISTRY_ABI,
        )
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(quickpay_address),
            abi=QUICKPAY_ABI,
        )
        self.registry = registry or UsernameRegistry(self._lookup_username)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Web3PaymentGateway":
        return cls(
            settings.rpc_url,
            settings.payer_private_key,
            settings.registry_contract_address,
            settings.quickpay_contract_address,
            chain_id=settings.chain_id,
            native_currency=settings.native_currency,
            receipt_timeout_sec=settings.payment_timeout_sec,
        )

    @property
    def address(self) -> str:
        return self.account.address

    def _lookup_username(self, username: str) -> str:
        return self.registry_contract.functions.getAddressByUsername(username).call()

    def send_payment(
        self,
        recipient_username: str,
        amount: float,
        currency: str,
        purpose: str,
    ) -> PaymentResult:
        normalized = (currency or "").upper()
        if normalized not in PAYABLE_CURRENCIES:
            return PaymentResult(
                success=False,
                message=f"Currently only {' and '.join(PAYABLE_CURRENCIES)} payments are supported.",
            )

        try:
            recipient_address = self.registry.resolve(recipient_username)
        except NotFoundError as e:
            return PaymentResult(success=False, message=str(e))
        except RemoteServiceFailure as e:
            return PaymentResult(success=False, message=f"Failed to get address: {e}")

        try:
            value = Web3.to_wei(Decimal(str(amount)), "ether")
            tx = self.contract.functions.sendPaymentByUsername(
                recipient_username, purpose or ""
            ).build_transaction(
                {
                    "from": self.account.address,
                    "value": value,
                    "nonce": self.w3.eth.get_transaction_count(self.account.address),
                    "chainId": self.chain_id,
                }
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout_sec
            )
        except Exception as e:
            logger.warning("payment_send_failed", recipient=recipient_username, error=str(e))
            return PaymentResult(success=False, message=f"Failed to send payment: {e}")

        tx_hash_hex = Web3.to_hex(tx_hash)
        if receipt.get("status") != 1:
            logger.warning("payment_reverted", tx_hash=tx_hash_hex)
            return PaymentResult(success=False, message="Transaction reverted on chain.", tx_hash=tx_hash_hex)

        logger.info("payment_sent", tx_hash=tx_hash_hex, recipient=recipient_username, currency=normalized)
        return PaymentResult(
            success=True,
            message=f"Successfully sent {amount} {normalized} to @{recipient_username}.",
            tx_hash=tx_hash_hex,
            sender=self.account.address,
            recipient_address=recipient_address,
        )

    def get_balance(self) -> BalanceResult:
        try:
            wei = self.w3.eth.get_balance(self.account.address)
        except Exception as e:
            logger.warning("balance_query_failed", error=str(e))
            return BalanceResult(
                success=False,
                message=f"Failed to get wallet balance: {e}",
                currency=self.native_currency,
            )
        balance = str(Web3.from_wei(wei, "ether"))
        return BalanceResult(
            success=True,
            message=f"Your current balance is {balance} {self.native_currency}.",
            balance=balance,
            currency=self.native_currency,
        )
