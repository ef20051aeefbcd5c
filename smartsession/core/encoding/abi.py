"""
ABI word codec for session payloads.

Covers the subset of the Solidity ABI used by smart session signatures and
ERC-7579 call data: static words (uint256, address, bytes32), dynamic
``bytes``, arrays of dynamic elements and tuples. Reads are bounds-checked so
truncated payloads fail instead of being zero-padded.
"""

from __future__ import annotations

from typing import Sequence, Tuple, Union

from eth_utils import to_canonical_address, to_checksum_address

from ..errors import MalformedPayload

WORD_SIZE = 32
MAX_UINT256 = 2**256 - 1

AddressLike = Union[str, bytes]


def address_bytes(address: AddressLike) -> bytes:
    """Return the 20 raw bytes of a hex or binary address."""
    try:
        return to_canonical_address(address)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid address: {address!r}") from exc


def encode_uint(value: int) -> bytes:
    if value < 0 or value > MAX_UINT256:
        raise ValueError("Value must fit in uint256")
    return value.to_bytes(WORD_SIZE, "big")


def encode_address(address: AddressLike) -> bytes:
    return address_bytes(address).rjust(WORD_SIZE, b"\x00")


def encode_bytes32(value: bytes) -> bytes:
    if len(value) != WORD_SIZE:
        raise ValueError(f"Expected 32 bytes, got {len(value)}")
    return bytes(value)


def encode_bytes(data: bytes) -> bytes:
    data_len = len(data)
    padded_len = ((data_len + WORD_SIZE - 1) // WORD_SIZE) * WORD_SIZE
    return encode_uint(data_len) + bytes(data).ljust(padded_len, b"\x00")


def encode_tuple(fields: Sequence[Tuple[bool, bytes]]) -> bytes:
    """
    Lay out already-encoded fields as an ABI head followed by its tail.

    Each field is ``(is_dynamic, encoded)``. Dynamic fields are replaced in the
    head by their offset relative to the start of the tuple.
    """
    head_size = sum(WORD_SIZE if dynamic else len(encoded) for dynamic, encoded in fields)
    head = b""
    tail = b""
    for dynamic, encoded in fields:
        if dynamic:
            head += encode_uint(head_size + len(tail))
            tail += encoded
        else:
            head += encoded
    return head + tail


def encode_dynamic_array(elements: Sequence[bytes]) -> bytes:
    """Encode an array whose (already-encoded) elements are dynamic."""
    return encode_uint(len(elements)) + encode_tuple([(True, e) for e in elements])


class AbiReader:
    """Bounds-checked reader over an ABI region starting at ``base``."""

    def __init__(self, data: bytes, base: int = 0, context: str = "payload"):
        self._data = data
        self.base = base
        self.context = context

    def __len__(self) -> int:
        return len(self._data)

    def _slice(self, start: int, size: int) -> bytes:
        end = start + size
        if start < 0 or end > len(self._data):
            raise MalformedPayload(
                f"{self.context}: reading {size} bytes at offset {start} overruns payload",
                len(self._data),
            )
        return bytes(self._data[start:end])

    def word(self, index: int) -> bytes:
        return self._slice(self.base + index * WORD_SIZE, WORD_SIZE)

    def uint(self, index: int) -> int:
        return int.from_bytes(self.word(index), "big")

    def bytes32(self, index: int) -> bytes:
        return self.word(index)

    def address(self, index: int) -> str:
        word = self.word(index)
        if any(word[:12]):
            raise MalformedPayload(f"{self.context}: dirty address padding", len(self._data))
        return to_checksum_address(word[12:])

    def tail(self, index: int) -> "AbiReader":
        """Follow the offset stored in head slot ``index``."""
        offset = self.uint(index)
        if self.base + offset > len(self._data):
            raise MalformedPayload(
                f"{self.context}: offset {offset} points past the payload",
                len(self._data),
            )
        return AbiReader(self._data, self.base + offset, self.context)

    def read_bytes(self) -> bytes:
        """Read a length-prefixed, zero-padded ``bytes`` value at ``base``."""
        length = self.uint(0)
        value = self._slice(self.base + WORD_SIZE, length)
        padding = -length % WORD_SIZE
        if any(self._slice(self.base + WORD_SIZE + length, padding)):
            raise MalformedPayload(f"{self.context}: dirty bytes padding", len(self._data))
        return value

    def read_array(self) -> Tuple[int, "AbiReader"]:
        """Return the length of the array at ``base`` and a reader over its elements."""
        length = self.uint(0)
        elements = AbiReader(self._data, self.base + WORD_SIZE, self.context)
        if length * WORD_SIZE > len(self._data) - elements.base:
            raise MalformedPayload(
                f"{self.context}: array of {length} elements overruns payload",
                len(self._data),
            )
        return length, elements
