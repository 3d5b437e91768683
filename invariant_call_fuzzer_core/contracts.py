# invariant_call_fuzzer_core/contracts.py
"""
Shared registry of the contracts that can be targeted during a fuzz run, and the
handle used to pin an override target.

The execution harness is the only writer: it inserts every newly deployed
contract. Generators only read, copying what they need out from under the lock.
"""
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .abi import AbiFunction, ContractAbi
from .call import Address, to_address

logger = logging.getLogger(__name__)


def _resolve_targeted_functions(abi: ContractAbi,
                                targeted_functions: Iterable[AbiFunction],
                                targeted_selectors: Iterable[Union[bytes, str]],
                                address: Union[str, bytes]
                               ) -> List[AbiFunction]:
    """Appends the functions behind `targeted_selectors`; unknown selectors are skipped with a warning."""
    functions: List[AbiFunction] = list(targeted_functions)
    for selector in targeted_selectors:
        func = abi.function_by_selector(selector)
        if func is None:
            logger.warning("Targeted selector %s not found in ABI of %s. Skipping.", selector, address)
            continue
        if func not in functions:
            functions.append(func)
    return functions


class TargetedContract:
    """
    One registry entry: a deployed contract, its ABI and the functions explicitly
    targeted on it. An empty `targeted_functions` means any state-mutating
    function of the ABI may be called.
    """
    __slots__ = ('address', 'identifier', 'abi', 'targeted_functions')

    def __init__(self,
                 address: Address,
                 abi: ContractAbi,
                 identifier: str = "",
                 targeted_functions: Iterable[AbiFunction] = ()
                ):
        self.address: Address = to_address(address)
        self.identifier: str = identifier # e.g. "src/Counter.sol:Counter"
        self.abi: ContractAbi = abi
        self.targeted_functions: Tuple[AbiFunction, ...] = tuple(targeted_functions)

    @classmethod
    def from_abi_json(cls,
                      address: Union[str, bytes],
                      abi_json: Union[str, List[Dict[str, Any]]],
                      identifier: str = "",
                      targeted_selectors: Iterable[Union[bytes, str]] = ()
                     ) -> 'TargetedContract':
        """Builds an entry from a JSON ABI (string or parsed list) and optional targeted selectors."""
        abi = ContractAbi.from_json(abi_json)
        functions = _resolve_targeted_functions(abi, (), targeted_selectors, address)
        return cls(address, abi, identifier, functions)

    def __repr__(self) -> str:
        return (f"TargetedContract(address='{self.address}', identifier='{self.identifier}', "
                f"functions={len(self.abi)}, targeted={len(self.targeted_functions)})")


class ContractRegistry:
    """
    Insert-only mapping from contract address to `TargetedContract`, shared
    between the execution harness and any number of generators.
    """
    def __init__(self):
        self._lock = threading.RLock()
        self._contracts: "OrderedDict[Address, TargetedContract]" = OrderedDict()

    def insert(self,
               address: Union[str, bytes],
               abi: ContractAbi,
               identifier: str = "",
               targeted_functions: Iterable[AbiFunction] = (),
               targeted_selectors: Iterable[Union[bytes, str]] = ()
              ) -> bool:
        """
        Registers a deployed contract. `targeted_selectors` are resolved against
        the ABI and appended to `targeted_functions`; unknown selectors are
        skipped with a warning.

        Returns False if the address was already registered (the first entry wins).
        """
        functions = _resolve_targeted_functions(abi, targeted_functions, targeted_selectors, address)
        entry = TargetedContract(address, abi, identifier, functions)
        with self._lock:
            if entry.address in self._contracts:
                logger.warning("Contract %s is already registered. Ignoring new entry.", entry.address)
                return False
            self._contracts[entry.address] = entry
        logger.info("Registered contract %s (%s) with %d functions, %d targeted.",
                    entry.address, identifier or "unnamed", len(abi), len(functions))
        return True

    def get(self, address: Union[str, bytes]) -> Optional[TargetedContract]:
        """Looks up a contract. Returns None for unknown or malformed addresses."""
        try:
            key = to_address(address)
        except ValueError:
            return None
        with self._lock:
            return self._contracts.get(key)

    def snapshot(self) -> List[TargetedContract]:
        """Copy of every entry in insertion order."""
        with self._lock:
            return list(self._contracts.values())

    def eligible(self) -> List[TargetedContract]:
        """Entries whose ABI exposes at least one function."""
        with self._lock:
            return [entry for entry in self._contracts.values() if entry.abi.has_functions]

    def addresses(self) -> List[Address]:
        with self._lock:
            return list(self._contracts.keys())

    def clear(self) -> None:
        """Drops every entry. Called once at the end of a run."""
        with self._lock:
            self._contracts.clear()

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, (str, bytes)):
            return False
        return self.get(address) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._contracts)

    def __repr__(self) -> str:
        return f"ContractRegistry(contracts={len(self)})"


class OverrideTarget:
    """
    Lock-protected handle to the address most override calls should target,
    e.g. a handler contract set up by a previous call. The harness may move it
    between draws.
    """
    def __init__(self, address: Union[str, bytes]):
        self._lock = threading.Lock()
        self._address: Address = to_address(address)

    def get(self) -> Address:
        with self._lock:
            return self._address

    def set(self, address: Union[str, bytes]) -> None:
        new_address = to_address(address)
        with self._lock:
            self._address = new_address

    def __repr__(self) -> str:
        return f"OverrideTarget('{self.get()}')"
