"""
Sender filters for a fuzz run: which addresses must be used as callers and which
must never be.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from . import config as core_config
from .call import Address, to_address

logger = logging.getLogger(__name__)


class SenderFilters:
    """
    Immutable allow/deny lists for call senders.

    If `targeted` is non-empty, senders are drawn exclusively from it and
    `excluded` is never consulted.
    """
    __slots__ = ('_targeted', '_excluded')

    def __init__(self, targeted: Iterable[str] = (), excluded: Iterable[str] = ()):
        unique_targeted: List[Address] = []
        for address in targeted:
            checksummed = to_address(address)
            if checksummed not in unique_targeted:
                unique_targeted.append(checksummed)

        self._targeted: Tuple[Address, ...] = tuple(unique_targeted)
        self._excluded: frozenset = frozenset(to_address(address) for address in excluded)

    @property
    def targeted(self) -> Tuple[Address, ...]:
        return self._targeted

    @property
    def excluded(self) -> frozenset:
        return self._excluded

    def is_excluded(self, address: Address) -> bool:
        return address in self._excluded

    def __repr__(self) -> str:
        return f"SenderFilters(targeted={len(self._targeted)}, excluded={len(self._excluded)})"


def _load_addresses_from_files(file_paths: Sequence[str], column: str) -> List[Address]:
    """Reads the `column` of each CSV file into a list of checksummed addresses."""
    addresses: List[Address] = []
    for file_path in file_paths:
        try:
            logger.info("Loading sender addresses from: %s", file_path)
            address_frame = pd.read_csv(file_path)
        except FileNotFoundError:
            logger.warning("Sender file not found: %s", file_path)
            continue
        except pd.errors.EmptyDataError:
            logger.warning("Sender file is empty: %s", file_path)
            continue

        if column not in address_frame.columns:
            logger.warning("Sender file %s has no '%s' column. Skipping.", file_path, column)
            continue

        for row_index, raw_address in address_frame[column].items():
            if pd.isna(raw_address):
                logger.warning("Skipping row %s in %s: empty address.", row_index, file_path)
                continue
            try:
                addresses.append(to_address(str(raw_address).strip()))
            except ValueError as e:
                logger.warning("Skipping row %s in %s: %s", row_index, file_path, e)
    return addresses


def load_sender_filters(targeted_paths: Optional[Sequence[str]] = None,
                        excluded_paths: Optional[Sequence[str]] = None,
                        column: str = core_config.DEFAULT_SENDER_CSV_COLUMN
                       ) -> SenderFilters:
    """
    Builds SenderFilters from CSV files with an address column.

    :param targeted_paths: CSV files listing the only senders to use.
    :param excluded_paths: CSV files listing senders that must never be used.
    :param column: Name of the column holding the addresses.
    """
    targeted = _load_addresses_from_files(targeted_paths or [], column)
    excluded = _load_addresses_from_files(excluded_paths or [], column)
    filters = SenderFilters(targeted, excluded)
    logger.info("Loaded %d targeted and %d excluded senders.", len(filters.targeted), len(filters.excluded))
    return filters
