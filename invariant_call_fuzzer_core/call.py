"""
Defines the basic data structures for generated calls and addresses.
"""
import random
from typing import NamedTuple, Union

from hexbytes import HexBytes
from web3 import Web3

# Checksummed 0x-prefixed hex string
Address = str

ADDRESS_LENGTH = 20


def to_address(value: Union[str, bytes]) -> Address:
    """
    Normalizes a hex string or 20 raw bytes into a checksummed address.
    Raises ValueError for anything that is not an address.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_LENGTH:
            raise ValueError(f"Expected {ADDRESS_LENGTH} address bytes, got {len(value)}")
        return Web3.to_checksum_address('0x' + bytes(value).hex())
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"Not a valid address: {value!r}")
    return Web3.to_checksum_address(value)


def random_address(rng: random.Random) -> Address:
    """A uniformly random 20-byte address."""
    return to_address(rng.getrandbits(8 * ADDRESS_LENGTH).to_bytes(ADDRESS_LENGTH, 'big'))


class Call(NamedTuple):
    """
    A single generated call: who sends it, which contract receives it and the
    ABI-encoded calldata. Consumed once by the execution harness.
    """
    sender: Address
    target: Address
    calldata: HexBytes

    @property
    def selector(self) -> HexBytes:
        """The 4-byte function selector at the start of the calldata."""
        return HexBytes(self.calldata[:4])

    def __repr__(self) -> str:
        return (f"Call(sender='{self.sender[:10]}...', target='{self.target[:10]}...', "
                f"selector={bytes(self.selector).hex()}, calldata_len={len(self.calldata)})")
