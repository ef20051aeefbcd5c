"""
Tests for the payload inspection CLI.
"""

import json
import logging

import pytest

from cli import main
from conftest import ACCOUNT, SIGNER_ID, TARGET, TRANSFER_CALL
from smartsession.core.encoding import encode_install_data
from smartsession.core.execution import build_single_call
from smartsession.core.session import action_id, build_enable_signature, build_use_signature, session_id


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run(capsys, *argv):
    code = main(list(argv))
    return code, json.loads(capsys.readouterr().out)


def test_install_data(capsys):
    data = encode_install_data(b"\x01" * 32, ACCOUNT, b"\x02\x03")

    code, result = run(capsys, "install-data", "0x" + data.hex())

    assert code == 0
    assert result == {
        "sessionId": "0x" + "01" * 32,
        "account": ACCOUNT,
        "initData": "0x0203",
    }


def test_install_data_too_short(capsys):
    code, result = run(capsys, "install-data", "00" * 51)

    assert code == 1
    assert result["error"] == "DataTooShort"
    assert result["details"] == {"length": 51, "required": 52}


def test_use_signature(capsys):
    code, result = run(capsys, "signature", build_use_signature(SIGNER_ID, b"\x09").hex())

    assert code == 0
    assert result["mode"] == "USE"
    assert result["sessionId"] == "0x" + session_id(SIGNER_ID).hex()
    assert result["signature"] == "0x09"


def test_enable_signature(capsys, env):
    enable_data = env.sign_enable(env.enable_data())

    code, result = run(capsys, "signature", build_enable_signature(enable_data, SIGNER_ID, b"\x09").hex())

    assert code == 0
    assert result["mode"] == "ENABLE"
    assert result["enableData"]["isigner"] == enable_data.isigner
    assert result["useSignature"] == "0x" + (SIGNER_ID + b"\x09").hex()
    assert "enableDigest" not in result


def test_enable_digest_for_account(capsys, env):
    enable_data = env.sign_enable(env.enable_data())
    signature = build_enable_signature(enable_data, SIGNER_ID, b"\x09").hex()

    code, result = run(capsys, "signature", signature, "--account", ACCOUNT, "--nonce", "2")

    assert code == 0
    assert result["enableDigest"] == "0x" + env.digest(enable_data, nonce=2).hex()


def test_call_data(capsys):
    call_data = build_single_call(TARGET, 5, TRANSFER_CALL)

    code, result = run(capsys, "call-data", call_data.hex())

    assert code == 0
    assert result["execute"] is True
    assert result["executions"][0]["target"] == TARGET
    assert result["executions"][0]["value"] == 5
    assert result["executions"][0]["actionId"] == "0x" + action_id(TARGET, TRANSFER_CALL).hex()


def test_ids(capsys):
    code, result = run(capsys, "ids", SIGNER_ID.hex(), "--target", TARGET, "--call-data", TRANSFER_CALL.hex())

    action = action_id(TARGET, TRANSFER_CALL)
    assert code == 0
    assert result["actionId"] == "0x" + action.hex()
    assert result["actionSessionId"] == "0x" + session_id(SIGNER_ID, action).hex()


def test_invalid_hex():
    with pytest.raises(SystemExit):
        main(["install-data", "zz"])
