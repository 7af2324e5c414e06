#!/usr/bin/env python3

"""
Barcode table: ordered entries matched against the start of index reads.

The table order is significant.  When several entries would accept the same
index read (duplicates, or one barcode being a prefix of another) the first
entry wins, so later overlapping entries are legal but may be unreachable.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import ConfigurationError

OTHER = "OTHER"
BARCODE_SEPARATOR = ","
KEY_SEPARATOR = ":"


@dataclass(frozen=True)
class BarcodeEntry:
    key1: str
    key2: Optional[str] = None
    catch_all: bool = False

    @property
    def len1(self) -> int:
        return len(self.key1)

    @property
    def len2(self) -> int:
        return len(self.key2) if self.key2 is not None else 0

    @property
    def label(self) -> str:
        if self.key2 is None:
            return self.key1
        return f"{self.key1}{KEY_SEPARATOR}{self.key2}"

    def matches(self, index1: str, index2: Optional[str] = None) -> bool:
        """Exact prefix match of index1 (and index2, when given) against this entry's keys.

        The catch-all entry never matches here; it is only selected as a fallback.
        An absent key2 has length zero and accepts any second index.
        """
        if self.catch_all:
            return False
        if not index1.startswith(self.key1):
            return False
        if index2 is not None and self.key2 is not None:
            return index2.startswith(self.key2)
        return True


def catch_all_entry() -> BarcodeEntry:
    return BarcodeEntry(OTHER, OTHER, catch_all=True)


def parse_barcode(item: str) -> BarcodeEntry:
    """Parse a single KEY1 or KEY1:KEY2 barcode."""
    parts = [p.strip() for p in item.split(KEY_SEPARATOR)]
    if len(parts) > 2:
        raise ConfigurationError(f"Barcode '{item}' has more than one '{KEY_SEPARATOR}'")
    key1 = parts[0]
    key2 = parts[1] if len(parts) == 2 else None
    if not key1:
        raise ConfigurationError(f"Barcode '{item}' has an empty first key")
    if key2 is not None and not key2:
        raise ConfigurationError(f"Barcode '{item}' has an empty second key")
    if OTHER in (key1, key2):
        raise ConfigurationError(f"Barcode '{item}' uses the reserved name {OTHER}")
    return BarcodeEntry(key1, key2)


def parse_barcode_table(values: Iterable[str], dual_index: bool) -> List[BarcodeEntry]:
    """
    Build the ordered barcode table from raw command line values.

    Args:
        values: One or more comma separated lists of KEY1[:KEY2] barcodes
        dual_index: Whether a second index read file is configured

    Returns:
        List[BarcodeEntry]: Entries in the order given

    Raises:
        ConfigurationError: If the table is empty or a barcode is malformed
    """
    entries = []
    for value in values:
        for item in value.split(BARCODE_SEPARATOR):
            if not item.strip():
                continue
            entry = parse_barcode(item)
            if entry.key2 is not None and not dual_index:
                raise ConfigurationError(
                    f"Barcode '{entry.label}' has a second key but no second index file (--i2) was given")
            entries.append(entry)

    if not entries:
        raise ConfigurationError("Barcode table is empty")
    return entries


def with_catch_all(entries: List[BarcodeEntry]) -> List[BarcodeEntry]:
    return list(entries) + [catch_all_entry()]


def _shadows(earlier: BarcodeEntry, later: BarcodeEntry) -> bool:
    if not later.key1.startswith(earlier.key1):
        return False
    if earlier.key2 is None:
        return True
    return later.key2 is not None and later.key2.startswith(earlier.key2)


def validate_barcode_table(entries: List[BarcodeEntry]) -> None:
    """Warn about entries that can never be selected and about uneven barcode lengths."""
    barcodes = [e for e in entries if not e.catch_all]
    for j, later in enumerate(barcodes):
        for earlier in barcodes[:j]:
            if _shadows(earlier, later):
                logging.warning(f"Barcode {later.label} (entry {j + 1}) is unreachable: "
                                f"reads matching it are taken by earlier barcode {earlier.label}")
                break

    if len(set(e.len1 for e in barcodes)) > 1:
        logging.warning("First barcode keys have inconsistent lengths")
    if len(set(e.len2 for e in barcodes if e.key2 is not None)) > 1:
        logging.warning("Second barcode keys have inconsistent lengths")
