# invariant_call_fuzzer_core/errors.py
"""
Exceptions raised by the call generation engine.

Generation errors are fatal to a single draw and are raised synchronously to the
caller; nothing in this package retries a draw after one of them.
"""
from typing import Optional


class InvariantFuzzError(Exception):
    """Base class for every error raised by this package."""


class InvalidRunConfig(InvariantFuzzError, ValueError):
    """Run configuration is malformed. Only raised at setup time."""


class UnsupportedAbiType(InvariantFuzzError, ValueError):
    """An ABI type string cannot be parsed or generated."""


class GenerationError(InvariantFuzzError):
    """A single call draw could not be completed."""


class NoEligibleContract(GenerationError):
    """No registered contract exposes at least one function."""

    def __init__(self, message: str = "No contract with at least one function is registered for fuzzing."):
        super().__init__(message)


class NoEligibleFunction(GenerationError):
    """The selected contract has no targeted or state-mutating function."""

    def __init__(self, address: str, message: Optional[str] = None):
        self.address = address
        super().__init__(message or f"Contract {address} has no eligible function to call.")


class NoEligibleSender(GenerationError):
    """Every sender drawn within the attempt bound was in the excluded set."""

    def __init__(self, attempts: int, excluded_count: int):
        self.attempts = attempts
        self.excluded_count = excluded_count
        super().__init__(
            f"No admissible sender found after {attempts} draws "
            f"({excluded_count} excluded senders). Check the excluded senders configuration."
        )


class UnknownTarget(GenerationError):
    """The override target address is not a registered contract."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Override target {address} is not a registered contract.")
