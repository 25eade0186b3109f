from eth_account import Account

from claw_agent.wallet import LocalAccountSigner, MockSigner, UnsignedTransaction, build_signer

KEY = "0x" + "11" * 32


def test_mock_signer_hash_shape():
    signer = MockSigner("0xMOCK")

    h1 = signer.sign_transaction(UnsignedTransaction(to="0xabc", value=1))
    h2 = signer.sign_transaction(UnsignedTransaction(to="0xabc", value=1))

    assert signer.address == "0xMOCK"
    assert h1.startswith("0xmock_")
    assert h1 != h2


def test_local_signer_signs_with_key():
    signer = LocalAccountSigner(KEY)
    tx = UnsignedTransaction(to=signer.address, value=10**15, chain_id=10143)

    tx_hash = signer.sign_transaction(tx)

    assert signer.address == Account.from_key(KEY).address
    assert tx_hash.startswith("0x")
    assert len(tx_hash) == 66
    assert signer.sign_transaction(tx) == tx_hash


def test_build_signer_selects_by_key():
    assert isinstance(build_signer("", "0xW"), MockSigner)
    assert build_signer("", "0xW").address == "0xW"
    assert isinstance(build_signer(KEY, "0xW"), LocalAccountSigner)


def test_tx_dict_shape():
    tx = UnsignedTransaction(to="0xabc", value=5, nonce=3)

    assert tx.to_tx_dict() == {
        "to": "0xabc", "value": 5, "data": "0x", "nonce": 3,
        "gas": 21_000, "gasPrice": 1_000_000_000, "chainId": 1,
    }
