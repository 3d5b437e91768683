# invariant_call_fuzzer_core/state.py
"""
Fuzz dictionaries: the run-wide corpus of observed values and the per-function
table of candidate arguments. Both bias generation toward inputs that already
showed up during execution.
"""
import logging
import random
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from eth_abi.grammar import ABIType, TupleType

from .abi import AbiFunction, parse_abi_type
from .call import Address, to_address

logger = logging.getLogger(__name__)

WORD_SIZE = 32


class _OrderedBag:
    """Insertion-ordered, de-duplicating bag with O(1) random access."""
    __slots__ = ('_items', '_seen')

    def __init__(self):
        self._items: List[Any] = []
        self._seen: set = set()

    def add(self, item: Any) -> bool:
        if item in self._seen:
            return False
        self._seen.add(item)
        self._items.append(item)
        return True

    def pick(self, rng: random.Random) -> Optional[Any]:
        if not self._items:
            return None
        return self._items[rng.randrange(len(self._items))]

    def items(self) -> List[Any]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._items)


def int_to_word(value: int) -> bytes:
    """Two's complement, big-endian 32-byte encoding of a signed or unsigned integer."""
    return (value % (1 << (8 * WORD_SIZE))).to_bytes(WORD_SIZE, 'big')


class ValueDictionary:
    """
    Run-wide corpus of values observed during execution, grouped by category:

    * addresses
    * 32-byte words (integers, booleans, fixed-size bytes)
    * dynamic byte strings (bytes and strings)

    Created empty at run start and shared by reference between the execution
    harness (the only writer) and every generator. Grows monotonically until
    `clear()` at the end of the run.
    """
    def __init__(self):
        self._lock = threading.RLock()
        self._addresses = _OrderedBag()
        self._words = _OrderedBag()
        self._byte_strings = _OrderedBag()

    # --- Insertion (execution harness) ---

    def insert_address(self, address: Union[str, bytes]) -> bool:
        checksummed = to_address(address)
        with self._lock:
            return self._addresses.add(checksummed)

    def insert_word(self, word: bytes) -> bool:
        """Stores a word, left-padding values shorter than 32 bytes."""
        if len(word) > WORD_SIZE:
            raise ValueError(f"Words are at most {WORD_SIZE} bytes, got {len(word)}")
        padded = bytes(word).rjust(WORD_SIZE, b'\x00')
        with self._lock:
            return self._words.add(padded)

    def insert_int(self, value: int) -> bool:
        return self.insert_word(int_to_word(value))

    def insert_bytes(self, value: Union[bytes, str]) -> bool:
        raw = value.encode('utf-8') if isinstance(value, str) else bytes(value)
        with self._lock:
            return self._byte_strings.add(raw)

    def insert_value(self, abi_type: str, value: Any) -> None:
        """
        Classifies a decoded ABI value by its type and stores it (and every
        element, for arrays and tuples) in the matching category.
        """
        self._insert_parsed(parse_abi_type(abi_type), value)

    def _insert_parsed(self, parsed: ABIType, value: Any) -> None:
        if parsed.is_array:
            item_type = parsed.item_type
            for item in value:
                self._insert_parsed(item_type, item)
            return

        if isinstance(parsed, TupleType):
            for component, item in zip(parsed.components, value):
                self._insert_parsed(component, item)
            return

        base = parsed.base
        if base == 'address':
            self.insert_address(value)
            self.insert_word(bytes.fromhex(to_address(value)[2:]))
        elif base in ('uint', 'int'):
            self.insert_int(value)
        elif base == 'bool':
            self.insert_int(int(bool(value)))
        elif base == 'bytes' and parsed.sub:
            # Fixed bytes are left-aligned in their word
            self.insert_word(bytes(value).ljust(WORD_SIZE, b'\x00'))
        elif base in ('bytes', 'string'):
            self.insert_bytes(value)
        else:
            logger.debug("No dictionary category for ABI type %s.", parsed.to_type_str())

    def collect_from_calldata(self, function: AbiFunction, calldata: Union[bytes, str]) -> None:
        """Decodes the arguments of an executed call and stores every one of them."""
        args = function.decode_args(calldata)
        for type_str, value in zip(function.input_types, args):
            self.insert_value(type_str, value)

    # --- Reads (generators) ---

    def draw_address(self, rng: random.Random) -> Optional[Address]:
        with self._lock:
            return self._addresses.pick(rng)

    def draw_word(self, rng: random.Random) -> Optional[bytes]:
        with self._lock:
            return self._words.pick(rng)

    def draw_bytes(self, rng: random.Random) -> Optional[bytes]:
        with self._lock:
            return self._byte_strings.pick(rng)

    def addresses(self) -> List[Address]:
        with self._lock:
            return self._addresses.items()

    def words(self) -> List[bytes]:
        with self._lock:
            return self._words.items()

    def byte_strings(self) -> List[bytes]:
        with self._lock:
            return self._byte_strings.items()

    def clear(self) -> None:
        """Drops the whole corpus. Called once at the end of a run."""
        with self._lock:
            self._addresses.clear()
            self._words.clear()
            self._byte_strings.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._addresses) + len(self._words) + len(self._byte_strings)

    def __repr__(self) -> str:
        with self._lock:
            return (f"ValueDictionary(addresses={len(self._addresses)}, words={len(self._words)}, "
                    f"byte_strings={len(self._byte_strings)})")


class CalldataDictionary:
    """
    Candidate arguments per `(function signature, parameter position)`, plus a
    pool of addresses usable for any `address` parameter. Filled from a state
    snapshot before the run; clones share the same backing data.
    """
    def __init__(self):
        self._inputs: Dict[Tuple[str, int], List[Any]] = {}
        self._addresses: List[Address] = []
        self._lock = threading.Lock()

    @classmethod
    def _sharing(cls, other: 'CalldataDictionary') -> 'CalldataDictionary':
        handle = cls.__new__(cls)
        handle._inputs = other._inputs
        handle._addresses = other._addresses
        handle._lock = other._lock
        return handle

    @classmethod
    def from_mapping(cls,
                     inputs: Mapping[str, Sequence[Iterable[Any]]],
                     addresses: Iterable[str] = ()
                    ) -> 'CalldataDictionary':
        """
        Builds a dictionary from `{signature: [candidates for param 0, candidates for param 1, ...]}`.
        """
        dictionary = cls()
        for signature, per_position in inputs.items():
            for position, candidates in enumerate(per_position):
                for value in candidates:
                    dictionary.add(signature, position, value)
        for address in addresses:
            dictionary.add_address(address)
        return dictionary

    def add(self, signature: str, position: int, value: Any) -> None:
        with self._lock:
            bucket = self._inputs.setdefault((signature, position), [])
            if value not in bucket:
                bucket.append(value)

    def add_address(self, address: Union[str, bytes]) -> None:
        checksummed = to_address(address)
        with self._lock:
            if checksummed not in self._addresses:
                self._addresses.append(checksummed)

    def candidates(self, signature: str, position: int) -> Tuple[Any, ...]:
        with self._lock:
            return tuple(self._inputs.get((signature, position), ()))

    def addresses(self) -> Tuple[Address, ...]:
        with self._lock:
            return tuple(self._addresses)

    def clone(self) -> 'CalldataDictionary':
        """A new handle on the same backing data. Nothing is copied or re-scanned."""
        return CalldataDictionary._sharing(self)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._inputs.values()) + len(self._addresses)

    def __repr__(self) -> str:
        return f"CalldataDictionary(signatures={len({key[0] for key in self._inputs})}, entries={len(self)})"
