"""
Tests for the PackedUserOperation model.
"""

import pytest
from eth_utils import keccak

from smartsession.core.execution import (
    PackedUserOperation,
    pack_uint128_pair,
    unpack_uint128_pair,
)

SENDER = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def user_op():
    return PackedUserOperation(
        sender=SENDER.lower(),
        nonce=3,
        call_data=b"\x01\x02",
        account_gas_limits=pack_uint128_pair(100_000, 200_000),
        pre_verification_gas=50_000,
        gas_fees=pack_uint128_pair(1, 2),
    )


class TestPackedUserOperation:
    def test_sender_is_checksummed(self, user_op):
        assert user_op.sender == SENDER

    def test_gas_limits(self, user_op):
        assert user_op.verification_gas_limit == 100_000
        assert user_op.call_gas_limit == 200_000

    def test_hash_ignores_signature(self, user_op):
        """Session signers sign the hash before the signature is attached."""
        assert user_op.hash() == user_op.with_signature(b"\x01" * 65).hash()

    def test_hash_binds_chain_and_entry_point(self, user_op):
        base = user_op.hash()
        assert user_op.hash(chain_id=2) != base
        assert user_op.hash(entry_point="0x" + "22" * 20) != base

    def test_hash_layout(self, user_op):
        entry_point = "0x" + "00" * 19 + "01"
        expected = keccak(
            keccak(user_op.pack())
            + b"\x00" * 12 + b"\x00" * 19 + b"\x01"
            + (5).to_bytes(32, "big")
        )
        assert user_op.hash(entry_point=entry_point, chain_id=5) == expected

    def test_hash_covers_call_data(self, user_op):
        other = PackedUserOperation(
            sender=SENDER,
            nonce=3,
            call_data=b"\x01\x03",
            account_gas_limits=user_op.account_gas_limits,
            pre_verification_gas=50_000,
            gas_fees=user_op.gas_fees,
        )
        assert other.hash() != user_op.hash()

    def test_rpc_round_trip(self, user_op):
        signed = user_op.with_signature(b"\xab")
        rpc = signed.to_rpc_dict()

        assert rpc["nonce"] == "0x3"
        assert rpc["signature"] == "0xab"
        assert PackedUserOperation.from_rpc(rpc) == signed


class TestUint128Pair:
    def test_pack_unpack(self):
        assert unpack_uint128_pair(pack_uint128_pair(7, 9)) == (7, 9)

    def test_rejects_overflow(self):
        with pytest.raises(ValueError):
            pack_uint128_pair(2**128, 0)
