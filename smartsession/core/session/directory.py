"""
Module directory.

Stands in for the chain: maps addresses to the module and account objects
deployed there. Lookups check the requested capability so a policy address
can never be used as a signer (or the reverse).
"""

import logging
from typing import Dict, Type, TypeVar

from eth_utils import to_checksum_address

from ..errors import ModuleNotFound, ModuleTypeMismatch
from .interfaces import SmartAccount

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ModuleDirectory:
    def __init__(self) -> None:
        self._modules: Dict[str, object] = {}

    def register(self, address: str, module: object) -> str:
        key = to_checksum_address(address)
        self._modules[key] = module
        logger.debug(f"Registered {type(module).__name__} at {key}")
        return key

    def __contains__(self, address: str) -> bool:
        return to_checksum_address(address) in self._modules

    def resolve(self, address: str, capability: Type[T]) -> T:
        """
        Return the object at ``address`` if it implements ``capability``.

        Raises:
            ModuleNotFound: Nothing is registered at ``address``
            ModuleTypeMismatch: The object does not implement ``capability``
        """
        key = to_checksum_address(address)
        module = self._modules.get(key)
        if module is None:
            raise ModuleNotFound(key)
        if not isinstance(module, capability):
            raise ModuleTypeMismatch(key, capability.__name__)
        return module

    def account(self, address: str) -> SmartAccount:
        return self.resolve(address, SmartAccount)
