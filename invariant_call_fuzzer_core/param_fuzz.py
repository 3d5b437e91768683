"""
Defines how function arguments and whole calldata payloads are synthesized.

Three sources of argument values:
* uniform random values of the parameter type (`fuzz_param`)
* values observed during execution, from the ValueDictionary (`fuzz_param_from_state`)
* candidates collected for a specific function parameter, from the
  CalldataDictionary (`fuzz_param_with_config`)
"""
import logging
import random
import string
from typing import Any, List, Union

import eth_abi
from eth_abi.grammar import ABIType, BasicType, TupleType
from hexbytes import HexBytes

from . import config as core_config
from .abi import AbiFunction, parse_abi_type
from .call import ADDRESS_LENGTH, random_address, to_address
from .errors import UnsupportedAbiType
from .state import WORD_SIZE, CalldataDictionary, ValueDictionary
from .strategies.weighted import WeightedChoice, select_uniform

logger = logging.getLogger(__name__)

STRING_ALPHABET = string.ascii_letters + string.digits + string.punctuation + ' '

CALLDATA_FROM_CONFIG = 'config'
CALLDATA_FROM_STATE = 'state'

# Which source builds the calldata of a single call
CALLDATA_SOURCES: WeightedChoice[str] = WeightedChoice([
    (core_config.CALLDATA_CONFIG_WEIGHT, CALLDATA_FROM_CONFIG),
    (core_config.CALLDATA_STATE_WEIGHT, CALLDATA_FROM_STATE),
])


def _as_parsed(abi_type: Union[str, ABIType]) -> ABIType:
    return parse_abi_type(abi_type) if isinstance(abi_type, str) else abi_type


def _array_length(rng: random.Random, parsed: ABIType) -> int:
    # The last dimension is the outermost one: `uint8[2][]` is a dynamic array of uint8[2]
    dimension = parsed.arrlist[-1]
    if dimension:
        return dimension[0]
    return rng.randint(0, core_config.MAX_DYNAMIC_ARRAY_LENGTH)


def _int_bounds(base: str, bits: int):
    if base == 'uint':
        return 0, (1 << bits) - 1
    return -(1 << (bits - 1)), (1 << (bits - 1)) - 1


def _random_int(rng: random.Random, base: str, bits: int) -> int:
    low, high = _int_bounds(base, bits)
    if rng.randrange(100) < core_config.INT_EDGE_CASE_PERCENT:
        edges = [low, high, 0, 1] if base == 'uint' else [low, high, 0, 1, -1]
        return select_uniform(rng, edges)
    return low + rng.getrandbits(bits)


def _random_bytes(rng: random.Random, length: int) -> bytes:
    if length == 0:
        return b''
    return rng.getrandbits(8 * length).to_bytes(length, 'big')


def fuzz_param(rng: random.Random, abi_type: Union[str, ABIType]) -> Any:
    """
    Uniformly random value of the given ABI type, encodable with eth_abi.
    Integers land on an edge value (min, max, 0, 1, -1) some of the time.
    """
    parsed = _as_parsed(abi_type)

    if parsed.is_array:
        item_type = parsed.item_type
        return [fuzz_param(rng, item_type) for _ in range(_array_length(rng, parsed))]

    if isinstance(parsed, TupleType):
        return tuple(fuzz_param(rng, component) for component in parsed.components)

    base = parsed.base
    if base == 'address':
        return random_address(rng)
    if base == 'bool':
        return rng.getrandbits(1) == 1
    if base in ('uint', 'int'):
        return _random_int(rng, base, parsed.sub)
    if base == 'bytes':
        if parsed.sub:
            return _random_bytes(rng, parsed.sub)
        return _random_bytes(rng, rng.randint(0, core_config.MAX_DYNAMIC_BYTES_LENGTH))
    if base == 'string':
        length = rng.randint(0, core_config.MAX_DYNAMIC_BYTES_LENGTH)
        return ''.join(select_uniform(rng, STRING_ALPHABET) for _ in range(length))
    raise UnsupportedAbiType(f"Cannot generate values of ABI type '{parsed.to_type_str()}'")


def _word_to_param(word: bytes, parsed: BasicType) -> Any:
    """Reinterprets a dictionary word as a value of a static basic type."""
    base = parsed.base
    if base in ('uint', 'int'):
        bits = parsed.sub
        value = int.from_bytes(word, 'big') & ((1 << bits) - 1)
        if base == 'int' and value >= (1 << (bits - 1)):
            value -= 1 << bits
        return value
    if base == 'bool':
        return any(word)
    if base == 'bytes':
        # Fixed bytes are stored left-aligned
        return word[:parsed.sub]
    if base == 'address':
        return to_address(word[WORD_SIZE - ADDRESS_LENGTH:])
    raise UnsupportedAbiType(f"Cannot derive ABI type '{parsed.to_type_str()}' from a word")


def fuzz_param_from_state(rng: random.Random, abi_type: Union[str, ABIType], value_dictionary: ValueDictionary) -> Any:
    """
    Value of the given type taken from the run's value dictionary, falling back
    to `fuzz_param` when the dictionary holds nothing of the matching category.
    Addresses come from the address bag first, then from the words.
    """
    parsed = _as_parsed(abi_type)

    if parsed.is_array:
        item_type = parsed.item_type
        return [fuzz_param_from_state(rng, item_type, value_dictionary)
                for _ in range(_array_length(rng, parsed))]

    if isinstance(parsed, TupleType):
        return tuple(fuzz_param_from_state(rng, component, value_dictionary) for component in parsed.components)

    base = parsed.base
    if base == 'address':
        address = value_dictionary.draw_address(rng)
        if address is not None:
            return address
        # Low 20 bytes of an observed word
        word = value_dictionary.draw_word(rng)
        if word is not None:
            return _word_to_param(word, parsed)
    elif base in ('bytes', 'string') and not parsed.sub:
        raw = value_dictionary.draw_bytes(rng)
        if raw is not None:
            return raw.decode('utf-8', errors='replace') if base == 'string' else raw
    elif base in ('uint', 'int', 'bool', 'bytes'):
        word = value_dictionary.draw_word(rng)
        if word is not None:
            return _word_to_param(word, parsed)

    return fuzz_param(rng, parsed)


def fuzz_param_with_config(rng: random.Random,
                           function: AbiFunction,
                           position: int,
                           calldata_dictionary: CalldataDictionary
                          ) -> Any:
    """
    Candidate collected for this exact function parameter, else a harvested
    address for `address` parameters, else a uniformly random value.
    """
    type_str = function.input_types[position]
    candidates = calldata_dictionary.candidates(function.signature, position)
    if candidates:
        value = select_uniform(rng, candidates)
        if eth_abi.is_encodable(type_str, value):
            return value
        logger.warning("Calldata dictionary value %r is not a valid %s for %s. Using a random value.",
                       value, type_str, function.signature)
    elif type_str == 'address':
        addresses = calldata_dictionary.addresses()
        if addresses:
            return select_uniform(rng, addresses)
    return fuzz_param(rng, type_str)


def fuzz_calldata_with_config(rng: random.Random,
                              function: AbiFunction,
                              calldata_dictionary: CalldataDictionary
                             ) -> HexBytes:
    """Calldata whose arguments come from the calldata dictionary where available."""
    args: List[Any] = [fuzz_param_with_config(rng, function, position, calldata_dictionary)
                       for position in range(len(function.input_types))]
    return function.encode_call(args)


def fuzz_calldata_from_state(rng: random.Random,
                             function: AbiFunction,
                             value_dictionary: ValueDictionary
                            ) -> HexBytes:
    """Calldata whose arguments come from the value dictionary where available."""
    args: List[Any] = [fuzz_param_from_state(rng, type_str, value_dictionary)
                       for type_str in function.input_types]
    return function.encode_call(args)


def fuzz_calldata(rng: random.Random,
                  function: AbiFunction,
                  value_dictionary: ValueDictionary,
                  calldata_dictionary: CalldataDictionary
                 ) -> HexBytes:
    """Calldata for `function`, built from the calldata dictionary (60) or the value dictionary (40)."""
    if CALLDATA_SOURCES.draw(rng) == CALLDATA_FROM_CONFIG:
        return fuzz_calldata_with_config(rng, function, calldata_dictionary)
    return fuzz_calldata_from_state(rng, function, value_dictionary)
