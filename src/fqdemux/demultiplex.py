#!/usr/bin/env python3

"""
Core demultiplexing pipeline logic.

Read tuples are pulled from the synchronized reader, classified against the
ordered barcode table and written to the matching barcode's output files.
"""

import csv
import logging
import timeit
from collections import Counter
from contextlib import ExitStack
from typing import List, Optional

from tqdm import tqdm

from .barcodes import BarcodeEntry, validate_barcode_table, with_catch_all
from .errors import ConfigurationError, OutputError
from .models import DemuxConfig
from .output import OutputManager, format_record, output_prefix
from .reader import RecordTuple, Role, SynchronizedReader
from .records import open_record_stream

DISCARDED = "discarded"


class DemuxStats:
    """Counts of read tuples per barcode label, plus discards and name mismatches."""

    def __init__(self, entries: List[BarcodeEntry]):
        self.labels = []
        for entry in entries:
            if entry.label not in self.labels:
                self.labels.append(entry.label)
        self.catch_all_label = next((e.label for e in entries if e.catch_all), None)
        self.routed = Counter()
        self.total = 0
        self.discarded = 0
        self.mismatches = 0

    def record(self, entry: Optional[BarcodeEntry]) -> None:
        self.total += 1
        if entry is None:
            self.discarded += 1
        else:
            self.routed[entry.label] += 1

    @property
    def matched(self) -> int:
        """Tuples assigned to a real barcode, not the catch-all."""
        return self.total - self.discarded - self.routed[self.catch_all_label]

    def match_rate(self) -> float:
        return self.matched / self.total if self.total else 0.0

    def log_summary(self) -> None:
        logging.info(f"Processed {self.total:,} read tuples, match rate: {self.match_rate():.1%}")
        for label in self.labels:
            logging.info(f"  {label}: {self.routed[label]:,}")
        if self.discarded:
            logging.info(f"Discarded {self.discarded:,} read tuples matching no barcode")
        if self.mismatches:
            logging.warning(f"{self.mismatches:,} read tuples had mismatched read names")

    def write_table(self, filename: str) -> None:
        """Write per-barcode counts as a tab separated table."""
        rows = [(label, self.routed[label]) for label in self.labels]
        rows.append((DISCARDED, self.discarded))
        try:
            with open(filename, 'w', newline='') as f:
                writer = csv.writer(f, delimiter='\t', lineterminator='\n')
                writer.writerow(['barcode', 'reads', 'fraction'])
                for label, count in rows:
                    fraction = count / self.total if self.total else 0.0
                    writer.writerow([label, count, f"{fraction:.4f}"])
        except OSError as e:
            raise OutputError(filename, f"cannot write statistics: {e}") from e


class BarcodeRouter:
    """
    Classify read tuples against the ordered barcode table and write them out.

    Primary read 1 goes to the first file of the selected barcode, primary
    read 2 (when configured) to the second.
    """

    def __init__(self, entries: List[BarcodeEntry], output_manager: OutputManager,
                 dual_index: bool, stats: Optional[DemuxStats] = None, verbose: bool = False):
        self.entries = entries
        self.output_manager = output_manager
        self.dual_index = dual_index
        self.catch_all = next((e for e in entries if e.catch_all), None)
        self.stats = stats if stats is not None else DemuxStats(entries)
        self.verbose = verbose

    def classify(self, read_tuple: RecordTuple) -> Optional[BarcodeEntry]:
        """Return the first entry whose keys prefix the index read(s), else the catch-all or None."""
        index1 = read_tuple.index1.sequence
        index2 = None
        if self.dual_index:
            index2 = read_tuple.index2.sequence

        for entry in self.entries:
            if entry.matches(index1, index2):
                return entry
        return self.catch_all

    def route(self, read_tuple: RecordTuple) -> Optional[BarcodeEntry]:
        entry = self.classify(read_tuple)
        self.stats.record(entry)

        if entry is None:
            if self.verbose:
                logging.debug(f"{read_tuple.primary1.identifier}: no barcode for index "
                              f"{read_tuple.index1.sequence}, discarded")
            return None

        if self.verbose:
            logging.debug(f"{read_tuple.primary1.identifier}: routed to {entry.label}")

        index2 = read_tuple.index2 if self.dual_index else None
        self.output_manager.write(entry, 0, format_record(read_tuple.primary1, read_tuple.index1, index2))
        if read_tuple.primary2 is not None:
            self.output_manager.write(entry, 1, format_record(read_tuple.primary2, read_tuple.index1, index2))
        return entry


def build_table(config: DemuxConfig) -> List[BarcodeEntry]:
    entries = list(config.barcodes)
    validate_barcode_table(entries)
    if config.catch_all:
        entries = with_catch_all(entries)
    return entries


def output_prefixes(config: DemuxConfig) -> List[str]:
    prefixes = [output_prefix(config.primary1, config.output_dir, config.prefix1)]
    if config.paired:
        prefixes.append(output_prefix(config.primary2, config.output_dir, config.prefix2))
        if prefixes[0] == prefixes[1]:
            raise ConfigurationError(f"Both primary read files would be written to prefix {prefixes[0]}; "
                                     f"use --prefix/--prefix2 to separate them")
    return prefixes


def demultiplex(config: DemuxConfig) -> DemuxStats:
    """
    Run the demultiplexing pipeline for one set of input files.

    Args:
        config: Resolved run configuration

    Returns:
        DemuxStats: Per-barcode counts for the run

    Raises:
        ConfigurationError: If the configuration is incomplete
        InputError: If an input file cannot be opened or parsed
        OutputError: If an output file cannot be opened or written
    """
    config.validate()
    entries = build_table(config)
    prefixes = output_prefixes(config)

    logging.info(f"Demultiplexing {config.primary1}" +
                 (f" and {config.primary2}" if config.paired else "") +
                 f" by {len(config.barcodes)} barcodes" +
                 (" (dual index)" if config.dual_index else ""))
    if not config.catch_all:
        logging.info("Reads matching no barcode will be discarded")

    start_time = timeit.default_timer()
    stats = DemuxStats(entries)

    with ExitStack() as stack:
        # Inputs are opened before any output file is created
        primary1 = stack.enter_context(open_record_stream(config.primary1, Role.PRIMARY1))
        index1 = stack.enter_context(open_record_stream(config.index1, Role.INDEX1))
        primary2 = None
        index2 = None
        if config.paired:
            primary2 = stack.enter_context(open_record_stream(config.primary2, Role.PRIMARY2))
        if config.dual_index:
            index2 = stack.enter_context(open_record_stream(config.index2, Role.INDEX2))

        output_manager = stack.enter_context(OutputManager(entries, prefixes))
        reader = SynchronizedReader(primary1, index1, primary2, index2)
        router = BarcodeRouter(entries, output_manager, config.dual_index, stats, config.verbose)

        with tqdm(desc="Demultiplexing", unit="read", disable=not config.show_progress) as pbar:
            for read_tuple in reader:
                router.route(read_tuple)
                pbar.update(1)

        stats.mismatches = reader.mismatches

    stats.log_summary()
    if config.stats_file:
        stats.write_table(config.stats_file)
        logging.info(f"Wrote barcode statistics to {config.stats_file}")

    elapsed = timeit.default_timer() - start_time
    logging.info(f"Elapsed time: {elapsed:.2f} seconds")
    return stats
