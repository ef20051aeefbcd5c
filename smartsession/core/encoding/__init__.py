"""
Encoding Module

Byte-level codecs shared by session signatures, module installation and
ERC-7579 call data.
"""

from .abi import (
    AbiReader,
    address_bytes,
    encode_address,
    encode_bytes,
    encode_bytes32,
    encode_dynamic_array,
    encode_tuple,
    encode_uint,
)
from .install_data import (
    INSTALL_DATA_MIN_LENGTH,
    InstallData,
    encode_install_data,
    parse_install_data,
)

__all__ = [
    "AbiReader",
    "address_bytes",
    "encode_address",
    "encode_bytes",
    "encode_bytes32",
    "encode_dynamic_array",
    "encode_tuple",
    "encode_uint",
    "INSTALL_DATA_MIN_LENGTH",
    "InstallData",
    "encode_install_data",
    "parse_install_data",
]
