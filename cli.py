#!/usr/bin/env python3
"""Simple CLI for inspecting smart session payloads locally"""

import argparse
import json
import sys
from typing import Any, Dict, Optional, Sequence

from smartsession.config import settings
from smartsession.core.encoding import parse_install_data
from smartsession.core.errors import SmartSessionError
from smartsession.core.execution import (
    decode_execution,
    decode_mode,
    decode_user_op_call_data,
    get_execute_selector,
)
from smartsession.core.session import (
    SmartSessionMode,
    action_id,
    decode_packed_sig_enable,
    decode_use,
    enable_digest,
    session_id,
    unpack_mode,
)
from smartsession.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def _parse_hex(value: str) -> bytes:
    value = value.strip()
    if value.startswith("0x"):
        value = value[2:]
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid hex string: {value[:20]}...") from exc


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


def print_result(result: Dict[str, Any]) -> None:
    print(json.dumps(result, indent=2))


def cli_install_data(data: bytes) -> Dict[str, Any]:
    parsed = parse_install_data(data)
    return {
        "sessionId": _hex(parsed.session_id),
        "account": parsed.account,
        "initData": _hex(parsed.init_data),
    }


def cli_signature(
    data: bytes,
    account: Optional[str] = None,
    nonce: int = 0,
    chain_id: Optional[int] = None,
) -> Dict[str, Any]:
    mode, payload = unpack_mode(data)
    if mode == SmartSessionMode.USE:
        signer_id, signature = decode_use(payload)
        return {
            "mode": mode.name,
            "signerId": _hex(signer_id),
            "sessionId": _hex(session_id(signer_id)),
            "signature": _hex(signature),
        }

    enable_data, signer_id, use_signature = decode_packed_sig_enable(payload)
    result = {
        "mode": mode.name,
        "signerId": _hex(signer_id),
        "sessionId": _hex(session_id(signer_id)),
        "enableData": enable_data.to_dict(),
        "useSignature": _hex(use_signature),
    }
    # The digest is bound to an account, so it is only shown when one is given
    if account:
        chain_id = chain_id if chain_id is not None else settings.chain_id
        result["enableDigest"] = _hex(
            enable_digest(signer_id, enable_data, account=account, chain_id=chain_id, nonce=nonce)
        )
    return result


def cli_call_data(data: bytes) -> Dict[str, Any]:
    if data[:4] != get_execute_selector():
        return {"selector": _hex(data[:4]), "execute": False}

    mode = decode_mode(data)
    executions = decode_execution(mode, decode_user_op_call_data(data))
    return {
        "selector": _hex(data[:4]),
        "execute": True,
        "callType": mode.call_type,
        "execType": mode.exec_type,
        "executions": [
            {
                "target": execution.target,
                "value": execution.value,
                "callData": _hex(execution.call_data),
                "actionId": _hex(action_id(execution.target, execution.call_data)),
            }
            for execution in executions
        ],
    }


def cli_ids(signer_id: bytes, target: Optional[str], call_data: bytes) -> Dict[str, Any]:
    result = {
        "signerId": _hex(signer_id),
        "sessionId": _hex(session_id(signer_id)),
    }
    if target:
        action = action_id(target, call_data)
        result["actionId"] = _hex(action)
        result["actionSessionId"] = _hex(session_id(signer_id, action))
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Smart Session CLI")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    subparsers = parser.add_subparsers(dest="command")

    install_parser = subparsers.add_parser("install-data", help="Decode module install data")
    install_parser.add_argument("data", type=_parse_hex, help="Install data (hex)")

    signature_parser = subparsers.add_parser("signature", help="Decode a user operation signature")
    signature_parser.add_argument("data", type=_parse_hex, help="Signature (hex)")
    signature_parser.add_argument("--account", help="Account address to compute the enable digest for")
    signature_parser.add_argument("--nonce", type=int, default=0, help="Account enable nonce for the signer id")
    signature_parser.add_argument("--chain-id", type=int, default=None, help="Chain ID (default: from settings)")

    call_parser = subparsers.add_parser("call-data", help="Decode ERC-7579 execute call data")
    call_parser.add_argument("data", type=_parse_hex, help="User operation call data (hex)")

    ids_parser = subparsers.add_parser("ids", help="Derive session and action ids")
    ids_parser.add_argument("signer_id", type=_parse_hex, help="Signer id (32 bytes hex)")
    ids_parser.add_argument("--target", help="Call target for an action id")
    ids_parser.add_argument("--call-data", type=_parse_hex, default=b"", help="Call data for an action id")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "install-data":
            print_result(cli_install_data(args.data))
        elif args.command == "signature":
            print_result(cli_signature(args.data, args.account, args.nonce, args.chain_id))
        elif args.command == "call-data":
            print_result(cli_call_data(args.data))
        elif args.command == "ids":
            print_result(cli_ids(args.signer_id, args.target, args.call_data))
    except SmartSessionError as exc:
        logger.error("decode_failed", command=args.command, **exc.to_dict())
        print_result(exc.to_dict())
        return 1
    except ValueError as exc:
        logger.error("invalid_input", command=args.command, error=str(exc))
        print(f"❌ Error: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
