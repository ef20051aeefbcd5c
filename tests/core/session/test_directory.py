"""
Tests for module resolution.
"""

import pytest

from conftest import ACCOUNT, SIGNER, FakeAccount, FakeSigner
from smartsession.core.errors import ModuleNotFound, ModuleTypeMismatch
from smartsession.core.session import ISigner, ModuleDirectory, UserOpPolicy


@pytest.fixture
def directory():
    directory = ModuleDirectory()
    directory.register(SIGNER.lower(), FakeSigner([]))
    directory.register(ACCOUNT, FakeAccount(ACCOUNT, []))
    return directory


def test_resolve_by_capability(directory):
    assert isinstance(directory.resolve(SIGNER, ISigner), FakeSigner)
    assert SIGNER in directory


def test_unknown_address(directory):
    with pytest.raises(ModuleNotFound):
        directory.resolve("0x" + "99" * 20, ISigner)


def test_wrong_capability(directory):
    with pytest.raises(ModuleTypeMismatch) as exc_info:
        directory.resolve(SIGNER, UserOpPolicy)
    assert exc_info.value.expected == "UserOpPolicy"


def test_account(directory):
    assert directory.account(ACCOUNT).address == ACCOUNT
    with pytest.raises(ModuleTypeMismatch):
        directory.account(SIGNER)
