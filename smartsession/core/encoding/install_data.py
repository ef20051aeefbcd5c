"""
Install data for session modules.

Signers and policies are installed once per session with a packed payload::

    [0:32)  session id
    [32:52) account address
    [52:]   module-specific init data
"""

from typing import NamedTuple, Union

from eth_utils import to_checksum_address

from ..errors import DataTooShort
from .abi import AddressLike, address_bytes

SESSION_ID_LENGTH = 32
ADDRESS_LENGTH = 20
INSTALL_DATA_MIN_LENGTH = SESSION_ID_LENGTH + ADDRESS_LENGTH


class InstallData(NamedTuple):
    session_id: bytes
    account: str
    init_data: memoryview


def parse_install_data(data: Union[bytes, bytearray, memoryview]) -> InstallData:
    """
    Split install data into session id, account and init data.

    The init data is a view into ``data``; nothing is copied.

    Raises:
        DataTooShort: If ``data`` is shorter than 52 bytes
    """
    if len(data) < INSTALL_DATA_MIN_LENGTH:
        raise DataTooShort(len(data), INSTALL_DATA_MIN_LENGTH)

    view = memoryview(data)
    return InstallData(
        session_id=bytes(view[:SESSION_ID_LENGTH]),
        account=to_checksum_address(bytes(view[SESSION_ID_LENGTH:INSTALL_DATA_MIN_LENGTH])),
        init_data=view[INSTALL_DATA_MIN_LENGTH:],
    )


def encode_install_data(session_id: bytes, account: AddressLike, init_data: bytes = b"") -> bytes:
    if len(session_id) != SESSION_ID_LENGTH:
        raise ValueError(f"Session id must be 32 bytes, got {len(session_id)}")
    return bytes(session_id) + address_bytes(account) + bytes(init_data)
