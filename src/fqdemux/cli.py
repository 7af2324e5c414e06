#!/usr/bin/env python3

"""
Command line interface for fqdemux.
"""

import argparse
import logging
import sys

from . import __version__
from .barcodes import parse_barcode_table
from .demultiplex import demultiplex
from .errors import DemultiplexError
from .models import DemuxConfig

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERNAL_ERROR = 3


def version():
    # 0.1 demultiplexing by single and dual index reads, OTHER catch-all
    return f"fqdemux version {__version__}"


def parse_args(argv):
    parser = argparse.ArgumentParser(
        description="fqdemux: Demultiplex FASTQ files by barcodes at the start of index reads.",
        epilog="Output files are named PREFIX_BARCODE.fastq and are always appended to.")

    parser.add_argument("-1", "--r1", dest="r1", required=True, metavar="FASTQ1",
                        help="FASTQ file with reads, gzipped or plain text")
    parser.add_argument("-2", "--r2", dest="r2", metavar="FASTQ2", help="Paired FASTQ file with reads")
    parser.add_argument("-i", "--i1", dest="i1", required=True, metavar="FASTQ_INDEX", help="First index read file")
    parser.add_argument("-j", "--i2", dest="i2", metavar="FASTQ_INDEX2", help="Second index read file")
    parser.add_argument("-b", "--barcodes", action="append", required=True, metavar="BARCODE1,BARCODE2,...",
                        help="Comma separated barcodes, KEY1 or KEY1:KEY2 when a second index is given. "
                             "May be repeated; earlier barcodes win when several match")
    parser.add_argument("-n", "--no-other", "--no_other", dest="no_other", action="store_true",
                        help="Do not output non matching reads into the OTHER file")
    parser.add_argument("-p", "--prefix", help="Prefix output filenames for FASTQ1 with PREFIX "
                                               "(default: FASTQ1 name without extensions)")
    parser.add_argument("-q", "--prefix2", help="Prefix output filenames for FASTQ2 with PREFIX2 "
                                                "(default: FASTQ2 name without extensions)")
    parser.add_argument("-O", "--output-dir", default=".", help="Directory for output files (default: .)")
    parser.add_argument("-s", "--stats", metavar="FILE", help="Write per-barcode read counts to FILE (TSV)")
    parser.add_argument("--no-progress", action="store_true", help="Do not show a progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=version())

    args = parser.parse_args(argv[1:])

    if args.prefix2 and not args.r2:
        parser.error("--prefix2 requires --r2")

    return args


def config_from_args(args: argparse.Namespace) -> DemuxConfig:
    dual_index = args.i2 is not None
    return DemuxConfig(
        primary1=args.r1,
        index1=args.i1,
        barcodes=parse_barcode_table(args.barcodes, dual_index),
        primary2=args.r2,
        index2=args.i2,
        catch_all=not args.no_other,
        prefix1=args.prefix,
        prefix2=args.prefix2,
        output_dir=args.output_dir,
        verbose=args.verbose,
        show_progress=not args.no_progress,
        stats_file=args.stats,
    )


def main(argv) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = config_from_args(args)
        demultiplex(config)
    except DemultiplexError as e:
        logging.error(str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logging.error("Interrupted, output files may be incomplete")
        return EXIT_FAILURE
    except Exception:
        logging.exception("Exiting on unexpected error, output files may be incomplete. "
                          "Please report this together with the traceback")
        return EXIT_INTERNAL_ERROR
    return EXIT_OK


def run():
    sys.exit(main(sys.argv))


if __name__ == "__main__":
    run()
