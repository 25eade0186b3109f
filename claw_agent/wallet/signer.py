"""
Signers

Wallet signing capability. The decision pipeline never calls it; execution
boundaries that settle on-chain (or authenticate to a venue) do.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnsignedTransaction:
    to: str
    value: int  # wei
    data: str = "0x"
    nonce: int = 0
    gas: int = 21_000
    gas_price: int = 1_000_000_000
    chain_id: int = 1

    def to_tx_dict(self) -> dict:
        return {
            "to": self.to,
            "value": int(self.value),
            "data": self.data,
            "nonce": self.nonce,
            "gas": self.gas,
            "gasPrice": self.gas_price,
            "chainId": self.chain_id,
        }


class Signer(Protocol):
    address: str

    def sign_transaction(self, tx: UnsignedTransaction) -> str: ...


class MockSigner:
    """Simulates signing without touching any key material."""

    def __init__(self, address: str = "0xMOCK_WALLET_ADDRESS"):
        self.address = address
        logger.debug(f"[MockSigner] Initialised with address {self.address}")

    def sign_transaction(self, tx: UnsignedTransaction) -> str:
        mock_hash = f"0xmock_{int(time.time() * 1000):x}_{secrets.token_hex(4)}"
        logger.info(f"[MockSigner] Signed tx -> to: {tx.to}, value: {tx.value}, hash: {mock_hash}")
        return mock_hash


class LocalAccountSigner:
    """Signs with a local private key via eth_account."""

    def __init__(self, private_key: str):
        self.account: LocalAccount = Account.from_key(private_key)
        self.address = self.account.address
        logger.debug(f"[LocalAccountSigner] Initialised with address {self.address}")

    def sign_transaction(self, tx: UnsignedTransaction) -> str:
        """
        Returns:
            0x-prefixed hash of the signed transaction
        """
        signed = self.account.sign_transaction(tx.to_tx_dict())
        tx_hash = "0x" + bytes(signed.hash).hex()
        logger.info(f"[LocalAccountSigner] Signed tx -> to: {tx.to}, value: {tx.value}, hash: {tx_hash}")
        return tx_hash


def build_signer(private_key: str, wallet_address: str) -> Signer:
    """LocalAccountSigner when a key is configured, MockSigner otherwise."""
    if private_key:
        return LocalAccountSigner(private_key)
    return MockSigner(wallet_address)
