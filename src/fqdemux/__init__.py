"""fqdemux: Demultiplex FASTQ files by barcodes found in index reads."""

__version__ = "0.1.0"

# Re-export key functions and classes that might be useful for programmatic access
from .barcodes import BarcodeEntry, parse_barcode_table
from .demultiplex import BarcodeRouter, DemuxStats, demultiplex
from .errors import ConfigurationError, DemultiplexError, InputError, OutputError
from .models import DemuxConfig
from .reader import RecordTuple, SynchronizedReader
from .records import Record, open_record_stream, strip_known_suffixes

__all__ = [
    "BarcodeEntry",
    "BarcodeRouter",
    "ConfigurationError",
    "DemultiplexError",
    "DemuxConfig",
    "DemuxStats",
    "InputError",
    "OutputError",
    "Record",
    "RecordTuple",
    "SynchronizedReader",
    "demultiplex",
    "open_record_stream",
    "parse_barcode_table",
    "strip_known_suffixes",
]
