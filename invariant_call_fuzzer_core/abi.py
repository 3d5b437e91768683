# invariant_call_fuzzer_core/abi.py
"""
Function descriptors and contract ABIs as seen by the call generator.

Only what generation needs is kept: the function name, its canonical input types
and its state mutability. Encoding and decoding go through eth_abi.
"""
import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import eth_abi
from eth_abi.exceptions import ABITypeError, ParseError
from eth_abi.grammar import ABIType, normalize, parse
from hexbytes import HexBytes
from web3 import Web3

from .errors import UnsupportedAbiType

# Mutabilities whose calls can never change contract state
READ_ONLY_MUTABILITIES = frozenset({'pure', 'view'})
DEFAULT_MUTABILITY = 'nonpayable'


def parse_abi_type(type_str: str) -> ABIType:
    """Parses and validates a canonical ABI type string (e.g. 'uint256[2]', '(address,bytes)')."""
    try:
        abi_type = parse(normalize(type_str))
        abi_type.validate()
    except (ParseError, ABITypeError) as e:
        raise UnsupportedAbiType(f"Unsupported ABI type '{type_str}': {e}") from e
    return abi_type


def canonical_input_type(param: Dict[str, Any]) -> str:
    """
    Turns a JSON ABI parameter into its canonical type string, expanding
    `tuple` components recursively: {'type': 'tuple[]', components: [...]} -> '(uint256,address)[]'.
    """
    param_type = param.get('type')
    if not param_type:
        raise UnsupportedAbiType(f"ABI parameter without a type: {param}")

    if param_type.startswith('tuple'):
        components = param.get('components')
        if components is None:
            raise UnsupportedAbiType(f"Tuple parameter without components: {param}")
        array_suffix = param_type[len('tuple'):]
        inner = ','.join(canonical_input_type(component) for component in components)
        return f"({inner}){array_suffix}"
    return normalize(param_type)


class AbiFunction:
    """
    A function descriptor: name, canonical input types and state mutability.
    Instances are immutable and hashable, so they can be shared freely between
    the registry and in-flight generation requests.
    """
    __slots__ = ('_name', '_input_types', '_state_mutability', '_selector')

    def __init__(self, name: str, input_types: Sequence[str] = (), state_mutability: str = DEFAULT_MUTABILITY):
        canonical_types = tuple(normalize(t) for t in input_types)
        for type_str in canonical_types:
            parse_abi_type(type_str)

        self._name: str = name
        self._input_types: Tuple[str, ...] = canonical_types
        self._state_mutability: str = state_mutability
        self._selector: HexBytes = HexBytes(Web3.keccak(text=self.signature)[:4])

    @classmethod
    def from_abi_entry(cls, entry: Dict[str, Any]) -> 'AbiFunction':
        """Builds a descriptor from one `type: function` entry of a JSON ABI."""
        mutability = entry.get('stateMutability')
        if mutability is None:
            # Pre-0.4.16 ABIs only carry `constant` and `payable`
            if entry.get('constant'):
                mutability = 'view'
            elif entry.get('payable'):
                mutability = 'payable'
            else:
                mutability = DEFAULT_MUTABILITY
        input_types = [canonical_input_type(param) for param in entry.get('inputs', [])]
        return cls(entry['name'], input_types, mutability)

    @classmethod
    def from_signature(cls, signature: str, state_mutability: str = DEFAULT_MUTABILITY) -> 'AbiFunction':
        """Builds a descriptor from a `name(type,...)` signature."""
        open_paren = signature.find('(')
        if open_paren <= 0 or not signature.endswith(')'):
            raise UnsupportedAbiType(f"Malformed function signature '{signature}'")
        name = signature[:open_paren]
        params = parse_abi_type(signature[open_paren:])
        return cls(name, [component.to_type_str() for component in params.components], state_mutability)

    @property
    def name(self) -> str:
        return self._name

    @property
    def input_types(self) -> Tuple[str, ...]:
        return self._input_types

    @property
    def state_mutability(self) -> str:
        return self._state_mutability

    @property
    def signature(self) -> str:
        return f"{self._name}({','.join(self._input_types)})"

    @property
    def selector(self) -> HexBytes:
        """First four bytes of keccak256(signature)."""
        return self._selector

    @property
    def is_mutable(self) -> bool:
        """True unless the function is pure or view."""
        return self._state_mutability not in READ_ONLY_MUTABILITIES

    def encode_call(self, args: Sequence[Any]) -> HexBytes:
        """Selector followed by the standard ABI encoding of `args`."""
        return HexBytes(bytes(self._selector) + eth_abi.encode(list(self._input_types), list(args)))

    def decode_args(self, calldata: Union[bytes, str]) -> Tuple[Any, ...]:
        """Inverse of encode_call. The selector must match this function."""
        data = HexBytes(calldata)
        if bytes(data[:4]) != bytes(self._selector):
            raise ValueError(f"Calldata selector {data[:4].hex()} does not match {self.signature}")
        return tuple(eth_abi.decode(list(self._input_types), bytes(data[4:])))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbiFunction):
            return NotImplemented
        return (self.signature, self._state_mutability) == (other.signature, other._state_mutability)

    def __hash__(self) -> int:
        return hash((self.signature, self._state_mutability))

    def __repr__(self) -> str:
        return f"AbiFunction('{self.signature}', {self._state_mutability})"


class ContractAbi:
    """Ordered, immutable collection of the functions a contract exposes."""
    __slots__ = ('_functions',)

    def __init__(self, functions: Iterable[AbiFunction] = ()):
        self._functions: Tuple[AbiFunction, ...] = tuple(functions)

    @classmethod
    def from_json(cls, abi_json: Union[str, List[Dict[str, Any]]]) -> 'ContractAbi':
        """
        Parses a JSON ABI (string or already-decoded list). Constructors, events,
        errors, fallback and receive entries are ignored.
        """
        entries = json.loads(abi_json) if isinstance(abi_json, str) else abi_json
        return cls(AbiFunction.from_abi_entry(entry) for entry in entries
                   if entry.get('type', 'function') == 'function')

    @property
    def functions(self) -> Tuple[AbiFunction, ...]:
        return self._functions

    @property
    def has_functions(self) -> bool:
        return len(self._functions) > 0

    def mutable_functions(self) -> List[AbiFunction]:
        """Functions that are neither pure nor view."""
        return [func for func in self._functions if func.is_mutable]

    def function_by_selector(self, selector: Union[bytes, str]) -> Optional[AbiFunction]:
        wanted = bytes(HexBytes(selector))
        for func in self._functions:
            if bytes(func.selector) == wanted:
                return func
        return None

    def function_by_signature(self, signature: str) -> Optional[AbiFunction]:
        for func in self._functions:
            if func.signature == signature:
                return func
        return None

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self):
        return iter(self._functions)

    def __repr__(self) -> str:
        return f"ContractAbi(functions={[func.signature for func in self._functions]})"
