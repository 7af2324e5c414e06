#!/usr/bin/env python3

"""
Record streams: decompress and parse one FASTQ or FASTA file into records.

Compression is recognised from the file's magic bytes rather than its name,
so plain files are read transparently whatever they are called.
"""

import bz2
import gzip
import logging
import os
from typing import Iterator, NamedTuple, Optional, TextIO

from Bio.SeqIO.FastaIO import SimpleFastaParser
from Bio.SeqIO.QualityIO import FastqGeneralIterator

from .errors import InputError

GZIP_MAGIC = b"\x1f\x8b"
BZIP2_MAGIC = b"BZh"

COMPRESSION_SUFFIXES = ('.gz', '.gzip', '.bz2')
FASTQ_SUFFIXES = ('.fastq', '.fq')
FASTA_SUFFIXES = ('.fasta', '.fa', '.fna')
KNOWN_SUFFIXES = COMPRESSION_SUFFIXES + FASTQ_SUFFIXES + FASTA_SUFFIXES + ('.txt',)


class Record(NamedTuple):
    identifier: str
    comment: Optional[str]
    sequence: str
    quality: Optional[str]


def strip_known_suffixes(name: str) -> str:
    """
    Strip trailing compression and sequence format suffixes from a file name.

    Suffixes are removed repeatedly while one is recognised, so
    'sample.fastq.gz' and 'sample.fq' both give 'sample'.  Any directory part
    is dropped.
    """
    base_name = os.path.basename(name)
    root, ext = os.path.splitext(base_name)
    while root and ext.lower() in KNOWN_SUFFIXES:
        base_name = root
        root, ext = os.path.splitext(base_name)
    return base_name


def split_header(title: str):
    """Split a header line (without its marker) into identifier and comment."""
    parts = title.split(None, 1)
    if not parts:
        return "", None
    identifier = parts[0]
    comment = parts[1].rstrip() if len(parts) > 1 else None
    return identifier, comment or None


def detect_compression(filename: str) -> Optional[str]:
    with open(filename, 'rb') as f:
        magic = f.read(3)
    if magic.startswith(GZIP_MAGIC):
        return 'gzip'
    if magic.startswith(BZIP2_MAGIC):
        return 'bz2'
    return None


def open_text(filename: str, compression: Optional[str]) -> TextIO:
    if compression == 'gzip':
        return gzip.open(filename, 'rt')
    if compression == 'bz2':
        return bz2.open(filename, 'rt')
    return open(filename, 'rt')


def detect_file_format(filename: str, compression: Optional[str] = None) -> str:
    """Return 'fastq' or 'fasta', from the file name when it is conclusive, else from the first character."""
    name = os.path.basename(filename).lower()
    while name.endswith(COMPRESSION_SUFFIXES):
        name = os.path.splitext(name)[0]

    if name.endswith(FASTQ_SUFFIXES):
        return 'fastq'
    if name.endswith(FASTA_SUFFIXES):
        return 'fasta'

    # Unrecognised names default to FASTQ unless the content starts like FASTA
    with open_text(filename, compression) as f:
        return 'fasta' if f.read(1) == '>' else 'fastq'


class RecordStream:
    """Forward-only iterator over the records of one input file."""

    def __init__(self, path: str, role: str):
        self.path = path
        self.role = role
        self.records_read = 0
        try:
            compression = detect_compression(path)
            self.file_format = detect_file_format(path, compression)
            self._handle = open_text(path, compression)
        except (OSError, EOFError, ValueError) as e:
            raise InputError(path, f"cannot open {role} input: {e}") from e

        if self.file_format == 'fastq':
            self._records = self._fastq_records()
        else:
            self._records = self._fasta_records()
        logging.debug(f"Opened {role} input {path} ({self.file_format}, {compression or 'uncompressed'})")

    def _fastq_records(self) -> Iterator[Record]:
        for title, seq, qual in FastqGeneralIterator(self._handle):
            identifier, comment = split_header(title)
            yield Record(identifier, comment, seq, qual)

    def _fasta_records(self) -> Iterator[Record]:
        for title, seq in SimpleFastaParser(self._handle):
            identifier, comment = split_header(title)
            yield Record(identifier, comment, seq, None)

    def __iter__(self):
        return self

    def __next__(self) -> Record:
        try:
            record = next(self._records)
        except (ValueError, OSError, EOFError) as e:
            raise InputError(self.path, f"malformed or truncated {self.role} input "
                                        f"after {self.records_read} records: {e}") from e
        self.records_read += 1
        return record

    def close(self):
        self._handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def open_record_stream(path: str, role: str) -> RecordStream:
    return RecordStream(path, role)
