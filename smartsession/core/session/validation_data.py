"""
ERC-4337 validation data.

Packed layout of the uint256 returned by validators and policies::

    bits   0..159  aggregator (0 = success, 1 = signature failure)
    bits 160..207  validUntil (0 = no expiry)
    bits 208..255  validAfter
"""

from dataclasses import dataclass

SIG_VALIDATION_SUCCESS = 0
SIG_VALIDATION_FAILED = 1
MAX_UINT48 = 2**48 - 1
_ADDRESS_MASK = 2**160 - 1


@dataclass(frozen=True)
class ValidationData:
    aggregator: int = SIG_VALIDATION_SUCCESS
    valid_until: int = 0
    valid_after: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.aggregator <= _ADDRESS_MASK:
            raise ValueError("Aggregator must fit in 160 bits")
        for value in (self.valid_until, self.valid_after):
            if not 0 <= value <= MAX_UINT48:
                raise ValueError("Timestamps must fit in uint48")

    @classmethod
    def success(cls, valid_after: int = 0, valid_until: int = 0) -> "ValidationData":
        return cls(SIG_VALIDATION_SUCCESS, valid_until, valid_after)

    @classmethod
    def failed(cls) -> "ValidationData":
        return cls(SIG_VALIDATION_FAILED)

    @classmethod
    def from_verdict(cls, passed: bool) -> "ValidationData":
        return cls.success() if passed else cls.failed()

    @classmethod
    def unpack(cls, value: int) -> "ValidationData":
        return cls(
            aggregator=value & _ADDRESS_MASK,
            valid_until=(value >> 160) & MAX_UINT48,
            valid_after=(value >> 208) & MAX_UINT48,
        )

    def pack(self) -> int:
        return self.aggregator | (self.valid_until << 160) | (self.valid_after << 208)

    @property
    def is_failed(self) -> bool:
        return self.aggregator == SIG_VALIDATION_FAILED

    @property
    def effective_valid_until(self) -> int:
        return self.valid_until or MAX_UINT48

    def intersect(self, other: "ValidationData") -> "ValidationData":
        """
        Combine two results so the tightest window wins.

        Results naming different aggregators cannot be combined and yield a
        failure.
        """
        if self.aggregator != other.aggregator:
            return ValidationData.failed()
        valid_until = min(self.effective_valid_until, other.effective_valid_until)
        return ValidationData(
            aggregator=self.aggregator,
            valid_until=0 if valid_until == MAX_UINT48 else valid_until,
            valid_after=max(self.valid_after, other.valid_after),
        )

    def is_valid_at(self, timestamp: int) -> bool:
        if self.aggregator != SIG_VALIDATION_SUCCESS:
            return False
        return self.valid_after <= timestamp <= self.effective_valid_until

    def to_dict(self) -> dict:
        return {
            "aggregator": hex(self.aggregator),
            "validAfter": self.valid_after,
            "validUntil": self.valid_until,
            "failed": self.is_failed,
        }

