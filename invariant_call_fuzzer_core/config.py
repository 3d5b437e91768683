# invariant_call_fuzzer_core/config.py
"""
Default configuration values for the Invariant Call Fuzzer Core library.
These can be overridden per run through `RunConfig`.
"""
from typing import Any

from .errors import InvalidRunConfig

# --- Sender Selection ---
DEFAULT_DICTIONARY_WEIGHT: int = 40      # Share (out of 100) of senders drawn from the value dictionary
MAX_SENDER_DRAW_ATTEMPTS: int = 256      # Redraw bound when a drawn sender is in the excluded set

# --- Calldata Synthesis ---
CALLDATA_CONFIG_WEIGHT: int = 60         # Calldata built from the per-function calldata dictionary
CALLDATA_STATE_WEIGHT: int = 40          # Calldata built from the shared value dictionary
MAX_DYNAMIC_ARRAY_LENGTH: int = 4        # Upper bound for generated `T[]` lengths
MAX_DYNAMIC_BYTES_LENGTH: int = 64       # Upper bound for generated `bytes` / `string` lengths
INT_EDGE_CASE_PERCENT: int = 10          # Chance that a uniform integer is an edge value (0, 1, min, max)

# --- Override Target ---
OVERRIDE_TARGET_WEIGHT: int = 80         # Calls sent to the externally supplied target
OVERRIDE_RANDOM_CONTRACT_WEIGHT: int = 20  # Calls sent to any other eligible registered contract

# --- Sender Filter Files ---
DEFAULT_SENDER_CSV_COLUMN: str = 'address'  # Column holding addresses in targeted/excluded sender CSVs

# --- Logging ---
LOG_LEVEL: str = "INFO"
LOG_TO_FILE: bool = False
LOG_FILE_PATH: str = "invariant_fuzzer.log"
LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _require_int(name: str, value: Any) -> int:
    # bool is an int subclass but never a meaningful weight or bound
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRunConfig(f"{name} must be an integer, got {value!r}")
    return value


class RunConfig:
    """
    Run-level tunables for call generation. Validated once at construction and
    read-only afterwards.

    :param dictionary_weight: Weight in [0, 100] of dictionary-drawn senders.
    :param max_sender_draw_attempts: How many sender draws may be rejected by the
                                     exclusion set before generation fails.
    """
    __slots__ = ('_dictionary_weight', '_max_sender_draw_attempts')

    def __init__(self,
                 dictionary_weight: int = DEFAULT_DICTIONARY_WEIGHT,
                 max_sender_draw_attempts: int = MAX_SENDER_DRAW_ATTEMPTS
                ):
        self._dictionary_weight = dictionary_weight
        self._max_sender_draw_attempts = max_sender_draw_attempts
        self.validate()

    def validate(self) -> None:
        """Raises InvalidRunConfig if any value is out of range."""
        weight = _require_int('dictionary_weight', self._dictionary_weight)
        if not 0 <= weight <= 100:
            raise InvalidRunConfig(f"dictionary_weight must be within [0, 100], got {weight}")

        attempts = _require_int('max_sender_draw_attempts', self._max_sender_draw_attempts)
        if attempts < 1:
            raise InvalidRunConfig(f"max_sender_draw_attempts must be positive, got {attempts}")

    @property
    def dictionary_weight(self) -> int:
        return self._dictionary_weight

    @property
    def max_sender_draw_attempts(self) -> int:
        return self._max_sender_draw_attempts

    def __repr__(self) -> str:
        return (f"RunConfig(dictionary_weight={self._dictionary_weight}, "
                f"max_sender_draw_attempts={self._max_sender_draw_attempts})")
