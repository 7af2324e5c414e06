#!/usr/bin/env python3

"""
Run configuration for the demultiplexing pipeline.
"""

from dataclasses import dataclass
from typing import List, Optional

from .barcodes import BarcodeEntry
from .errors import ConfigurationError


@dataclass
class DemuxConfig:
    """Resolved settings for one run, passed explicitly to every component."""
    primary1: str
    index1: str
    barcodes: List[BarcodeEntry]
    primary2: Optional[str] = None
    index2: Optional[str] = None
    catch_all: bool = True
    prefix1: Optional[str] = None
    prefix2: Optional[str] = None
    output_dir: str = "."
    verbose: bool = False
    show_progress: bool = True
    stats_file: Optional[str] = None

    @property
    def paired(self) -> bool:
        return self.primary2 is not None

    @property
    def dual_index(self) -> bool:
        return self.index2 is not None

    def validate(self) -> None:
        """Reject incomplete configurations before any file is opened."""
        if not self.primary1:
            raise ConfigurationError("Primary read file (--r1) is required")
        if not self.index1:
            raise ConfigurationError("Index read file (--i1) is required")
        if not self.barcodes:
            raise ConfigurationError("At least one barcode is required")
        if any(e.catch_all for e in self.barcodes):
            raise ConfigurationError("The OTHER catch-all is added by the pipeline, not the barcode table")
        if not self.dual_index and any(e.key2 is not None for e in self.barcodes):
            raise ConfigurationError("Combined barcodes (KEY1:KEY2) require a second index file (--i2)")
