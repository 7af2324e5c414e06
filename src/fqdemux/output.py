#!/usr/bin/env python3

"""
Output destinations: one append-mode FASTQ file per barcode and primary read.
"""

import logging
import os
from typing import Dict, List, Optional, TextIO

from .barcodes import BarcodeEntry
from .errors import OutputError
from .records import Record, strip_known_suffixes

OUTPUT_EXTENSION = ".fastq"


def format_record(primary: Record, index1: Record, index2: Optional[Record] = None) -> str:
    """Format a primary read as a 4-line FASTQ record with the index sequence(s) in its header."""
    header = ['@', primary.identifier]
    if primary.comment:
        header.append(' ' + primary.comment)
    header.append(' ' + index1.sequence)
    if index2 is not None:
        header.append(':' + index2.sequence)

    output = []
    output.append(''.join(header) + "\n")
    output.append(primary.sequence + "\n")
    output.append("+\n")
    output.append((primary.quality or '') + "\n")
    return ''.join(output)


def output_prefix(input_path: str, output_dir: str = ".", override: Optional[str] = None) -> str:
    """Prefix for output files derived from a primary input path, unless overridden."""
    prefix = override if override else strip_known_suffixes(input_path)
    return os.path.join(output_dir, prefix)


def destination_path(prefix: str, entry: BarcodeEntry) -> str:
    return f"{prefix}_{entry.label}{OUTPUT_EXTENSION}"


class OutputManager:
    """Opens every destination up front and keeps it open until the run ends.

    Handles are keyed by barcode entry; each entry has one handle per
    configured primary read file.
    """

    def __init__(self, entries: List[BarcodeEntry], prefixes: List[str]):
        self.entries = entries
        self.prefixes = prefixes
        self._handles: Dict[BarcodeEntry, List[TextIO]] = {}
        self._paths: Dict[BarcodeEntry, List[str]] = {}

    def __enter__(self):
        try:
            self.open_all()
        except BaseException:
            self.close_all()
            raise
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        failed = self.close_all()
        if failed and exc_type is None:
            raise OutputError(failed[0], "failed to flush output file on close")

    def open_all(self) -> None:
        for prefix in self.prefixes:
            directory = os.path.dirname(prefix)
            if directory:
                try:
                    os.makedirs(directory, exist_ok=True)
                except OSError as e:
                    raise OutputError(directory, f"cannot create output directory: {e}") from e

        for entry in self.entries:
            if entry in self._handles:
                # Duplicate barcode, the earlier entry already owns the files
                continue
            handles = []
            paths = []
            self._handles[entry] = handles
            self._paths[entry] = paths
            for prefix in self.prefixes:
                filename = destination_path(prefix, entry)
                try:
                    handles.append(open(filename, 'a'))  # Always append mode
                except OSError as e:
                    raise OutputError(filename, f"cannot open output file: {e}") from e
                paths.append(filename)
                logging.debug(f"Opened output {filename}")

    def write(self, entry: BarcodeEntry, role_index: int, data: str) -> None:
        try:
            self._handles[entry][role_index].write(data)
        except OSError as e:
            raise OutputError(self._paths[entry][role_index], f"cannot write output file: {e}") from e

    def close_all(self) -> List[str]:
        """Close every handle, returning the paths that failed to flush."""
        errors = []
        for entry, handles in self._handles.items():
            for f, filename in zip(handles, self._paths[entry]):
                try:
                    f.close()
                except OSError as e:
                    logging.error(f"Error closing output file {filename}: {e}")
                    errors.append(filename)
        self._handles.clear()
        return errors
