# invariant_call_fuzzer_core/__init__.py

# This file makes the directory a Python package.
# Key classes are exposed here for easier imports by users of the library.

from .abi import AbiFunction, ContractAbi
from .call import Address, Call
from .config import RunConfig
from .contracts import ContractRegistry, OverrideTarget, TargetedContract
from .errors import (
    GenerationError,
    InvalidRunConfig,
    InvariantFuzzError,
    NoEligibleContract,
    NoEligibleFunction,
    NoEligibleSender,
    UnknownTarget,
    UnsupportedAbiType,
)
from .generator import CallGenerator, OverrideCallGenerator, invariant_strategy
from .senders import SenderFilters, load_sender_filters
from .state import CalldataDictionary, ValueDictionary
