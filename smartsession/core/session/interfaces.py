"""
Module interfaces.

Signers and policies are plugged in per session. Each capability has one
fixed check method so the validator never special-cases a concrete module.
Every module receives ``session_id ‖ account ‖ init_data`` through
``on_install`` when a session is enabled (see ``parse_install_data``), and the
same bytes through ``on_uninstall`` when the session is removed or its enable
is rolled back.
"""

from abc import ABC, abstractmethod

from ..execution.userop import PackedUserOperation
from .models import ActionCheck
from .validation_data import ValidationData

ERC1271_MAGIC_VALUE = bytes.fromhex("1626ba7e")


class SessionModule(ABC):
    """Base interface for modules installed per session"""

    @abstractmethod
    def on_install(self, data: bytes) -> None:
        """Initialize module state for a session from install data"""
        pass

    @abstractmethod
    def on_uninstall(self, data: bytes) -> None:
        """Drop module state created by ``on_install`` with the same data"""
        pass


class ISigner(SessionModule):
    """Proves that a signature authorizes a hash for a session"""

    @abstractmethod
    def check_signature(
        self,
        session_id: bytes,
        account: str,
        hash: bytes,
        signature: bytes,
    ) -> bool:
        """Return True if ``signature`` is valid for ``hash``; must not mutate state"""
        pass


class UserOpPolicy(SessionModule):
    """Constrains whole user operations"""

    @abstractmethod
    def check_user_op(self, session_id: bytes, user_op: PackedUserOperation) -> ValidationData:
        pass


class ActionPolicy(SessionModule):
    """Constrains a single external call"""

    @abstractmethod
    def check_action(self, session_id: bytes, check: ActionCheck) -> ValidationData:
        pass


class ERC1271Policy(SessionModule):
    """Constrains ERC-1271 signature requests made with a session"""

    @abstractmethod
    def check_signed_action(
        self,
        session_id: bytes,
        account: str,
        sender: str,
        hash: bytes,
        signature: bytes,
    ) -> bool:
        pass


class SmartAccount(ABC):
    """The account's own ERC-1271 entry point"""

    address: str

    @abstractmethod
    def is_valid_signature(self, hash: bytes, signature: bytes) -> bytes:
        """Return ERC1271_MAGIC_VALUE if the owner signed ``hash``"""
        pass
