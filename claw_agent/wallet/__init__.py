"""Wallet signing capability."""

from claw_agent.wallet.signer import LocalAccountSigner, MockSigner, UnsignedTransaction, build_signer

__all__ = ["MockSigner", "LocalAccountSigner", "UnsignedTransaction", "build_signer"]
