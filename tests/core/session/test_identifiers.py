"""
Tests for session ids, action ids and the enable digest.
"""

from dataclasses import replace

import pytest
from eth_utils import keccak

from smartsession.core.session import (
    ActionData,
    EnableSessions,
    PolicyData,
    action_id,
    enable_digest,
    function_selector,
    session_id,
)

SIGNER_ID = b"\x01" * 32
TARGET = "0x1111111111111111111111111111111111111111"
POLICY_A = "0x3333333333333333333333333333333333333333"
POLICY_B = "0x4444444444444444444444444444444444444444"
ACCOUNT = "0x9999999999999999999999999999999999999999"


def digest(signer_id, enable_data, account=ACCOUNT, chain_id=1, nonce=0):
    return enable_digest(signer_id, enable_data, account=account, chain_id=chain_id, nonce=nonce)


@pytest.fixture
def enable_data():
    return EnableSessions(
        isigner="0x2222222222222222222222222222222222222222",
        isigner_init_data=b"signer",
        user_op_policies=[PolicyData(POLICY_A, b"a"), PolicyData(POLICY_B, b"b")],
        erc1271_policies=[PolicyData(POLICY_A)],
        actions=[ActionData(b"\x05" * 32, [PolicyData(POLICY_B, b"x")])],
    )


class TestSessionIds:
    def test_signer_session(self):
        assert session_id(SIGNER_ID) == keccak(SIGNER_ID)

    def test_action_session(self):
        action = b"\x02" * 32
        assert session_id(SIGNER_ID, action) == keccak(SIGNER_ID + action)
        assert session_id(SIGNER_ID, action) != session_id(SIGNER_ID)

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            session_id(b"\x01" * 31)


class TestActionIds:
    def test_function_selector(self):
        assert function_selector(b"\xa9\x05\x9c\xbb\x00") == b"\xa9\x05\x9c\xbb"

    def test_short_call_data_has_zero_selector(self):
        assert function_selector(b"\x01\x02") == b"\x00" * 4

    def test_action_id_layout(self):
        expected = keccak(bytes.fromhex("11" * 20) + b"\xa9\x05\x9c\xbb")
        assert action_id(TARGET, b"\xa9\x05\x9c\xbb" + b"\x00" * 64) == expected

    def test_arguments_do_not_change_action(self):
        assert action_id(TARGET, b"\xa9\x05\x9c\xbb\x01") == action_id(TARGET, b"\xa9\x05\x9c\xbb\x02")

    def test_plain_transfer_matches_empty_call(self):
        assert action_id(TARGET, b"") == action_id(TARGET, b"\x00\x00")


class TestEnableDigest:
    def test_deterministic(self, enable_data):
        assert digest(SIGNER_ID, enable_data) == digest(SIGNER_ID, enable_data)

    def test_excludes_owner_signature(self, enable_data):
        signed = replace(enable_data, permission_enable_sig=b"\x99" * 65)
        assert digest(SIGNER_ID, signed) == digest(SIGNER_ID, enable_data)

    def test_binds_signer_id(self, enable_data):
        assert digest(b"\x02" * 32, enable_data) != digest(SIGNER_ID, enable_data)

    @pytest.mark.parametrize("field,value", [
        ("isigner", "0x5555555555555555555555555555555555555555"),
        ("isigner_init_data", b"other"),
        ("user_op_policies", [PolicyData(POLICY_A, b"a")]),
        ("erc1271_policies", []),
        ("actions", []),
    ])
    def test_binds_every_field(self, enable_data, field, value):
        changed = replace(enable_data, **{field: value})
        assert digest(SIGNER_ID, changed) != digest(SIGNER_ID, enable_data)

    @pytest.mark.parametrize("overrides", [
        {"account": "0x8888888888888888888888888888888888888888"},
        {"chain_id": 8453},
        {"nonce": 1},
    ])
    def test_binds_account_chain_and_nonce(self, enable_data, overrides):
        assert digest(SIGNER_ID, enable_data, **overrides) != digest(SIGNER_ID, enable_data)

    def test_policy_order_matters(self, enable_data):
        reordered = replace(
            enable_data,
            user_op_policies=list(reversed(enable_data.user_op_policies)),
        )
        assert digest(SIGNER_ID, reordered) != digest(SIGNER_ID, enable_data)
