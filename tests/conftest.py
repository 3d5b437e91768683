import random

import pytest
from web3 import Web3

from invariant_call_fuzzer_core.abi import AbiFunction, ContractAbi
from invariant_call_fuzzer_core.contracts import ContractRegistry
from invariant_call_fuzzer_core.senders import SenderFilters
from invariant_call_fuzzer_core.state import CalldataDictionary, ValueDictionary

COUNTER_ADDRESS = Web3.to_checksum_address("0x" + "aa" * 20)
TOKEN_ADDRESS = Web3.to_checksum_address("0x" + "bb" * 20)
VAULT_ADDRESS = Web3.to_checksum_address("0x" + "cc" * 20)
HANDLER_ADDRESS = Web3.to_checksum_address("0x" + "dd" * 20)
BEEF_ADDRESS = Web3.to_checksum_address("0x" + "beef" * 10)

COUNTER_ABI = [
    {"type": "function", "name": "increment", "inputs": [], "outputs": [], "stateMutability": "nonpayable"},
    {"type": "function", "name": "setValue", "inputs": [{"name": "newValue", "type": "uint256"}],
     "outputs": [], "stateMutability": "nonpayable"},
    {"type": "function", "name": "number", "inputs": [], "outputs": [{"name": "", "type": "uint256"}],
     "stateMutability": "view"},
    {"type": "function", "name": "double", "inputs": [{"name": "x", "type": "uint256"}],
     "outputs": [{"name": "", "type": "uint256"}], "stateMutability": "pure"},
    {"type": "event", "name": "Incremented", "inputs": [], "anonymous": False},
]

TOKEN_ABI = [
    {"type": "constructor", "inputs": [{"name": "supply", "type": "uint256"}], "stateMutability": "nonpayable"},
    {"type": "function", "name": "transfer",
     "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
     "outputs": [{"name": "", "type": "bool"}], "stateMutability": "nonpayable"},
    {"type": "function", "name": "approve",
     "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
     "outputs": [{"name": "", "type": "bool"}], "stateMutability": "nonpayable"},
    {"type": "function", "name": "balanceOf", "inputs": [{"name": "owner", "type": "address"}],
     "outputs": [{"name": "", "type": "uint256"}], "stateMutability": "view"},
]

VAULT_ABI = [
    {"type": "function", "name": "deposit",
     "inputs": [{"name": "order", "type": "tuple", "components": [
         {"name": "owner", "type": "address"},
         {"name": "amounts", "type": "uint128[]"},
         {"name": "memo", "type": "string"},
     ]}, {"name": "salt", "type": "bytes32"}],
     "outputs": [], "stateMutability": "payable"},
    {"type": "function", "name": "withdraw",
     "inputs": [{"name": "delta", "type": "int64"}, {"name": "proof", "type": "bytes"},
                {"name": "flags", "type": "bool[2]"}],
     "outputs": [], "stateMutability": "nonpayable"},
]

VIEW_ONLY_ABI = [
    {"type": "function", "name": "totalSupply", "inputs": [], "outputs": [{"name": "", "type": "uint256"}],
     "stateMutability": "view"},
    {"type": "function", "name": "version", "inputs": [], "outputs": [{"name": "", "type": "string"}],
     "stateMutability": "pure"},
]


@pytest.fixture
def rng():
    """Seeded random source so statistical tests are reproducible."""
    return random.Random(1337)


@pytest.fixture
def counter_abi():
    return ContractAbi.from_json(COUNTER_ABI)


@pytest.fixture
def token_abi():
    return ContractAbi.from_json(TOKEN_ABI)


@pytest.fixture
def vault_abi():
    return ContractAbi.from_json(VAULT_ABI)


@pytest.fixture
def registry():
    return ContractRegistry()


@pytest.fixture
def counter_registry(registry, counter_abi):
    registry.insert(COUNTER_ADDRESS, counter_abi, identifier="src/Counter.sol:Counter")
    return registry


@pytest.fixture
def value_dictionary():
    return ValueDictionary()


@pytest.fixture
def calldata_dictionary():
    return CalldataDictionary()


@pytest.fixture
def open_senders():
    return SenderFilters()


@pytest.fixture
def set_value_function():
    return AbiFunction("setValue", ["uint256"])
