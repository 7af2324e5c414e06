"""
Shared pytest fixtures for fqdemux tests.
"""

import gzip
import tempfile
from pathlib import Path

import pytest


def fastq_text(records):
    """Render (name, sequence, quality) tuples as FASTQ text."""
    lines = []
    for name, seq, qual in records:
        lines.extend([f"@{name}", seq, "+", qual])
    return "\n".join(lines) + "\n"


def read_fastq(path):
    """Parse a written output file into (header, sequence, quality) tuples."""
    lines = Path(path).read_text().split("\n")
    assert lines[-1] == ""
    lines = lines[:-1]
    assert len(lines) % 4 == 0
    return [(lines[i], lines[i + 1], lines[i + 3]) for i in range(0, len(lines), 4)]


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory(prefix="fqdemux_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def write_fastq(temp_dir):
    """Write FASTQ records to a file in the temporary directory, gzipped for .gz names."""
    def _write(name, records):
        path = temp_dir / name
        text = fastq_text(records)
        if name.endswith(".gz"):
            with gzip.open(path, "wt") as f:
                f.write(text)
        else:
            path.write_text(text)
        return path
    return _write


@pytest.fixture
def paired_run(write_fastq):
    """Two primary and two index files, four read tuples."""
    names = ["read1", "read2", "read3", "read4"]
    r1 = write_fastq("run_R1.fastq.gz", [(n + " 1:N:0", "ACGTACGT", "IIIIIIII") for n in names])
    r2 = write_fastq("run_R2.fastq.gz", [(n + " 2:N:0", "TTTTGGGG", "########") for n in names])
    i1 = write_fastq("run_I1.fastq.gz", [(names[0], "AACCGG", "IIIIII"),
                                         (names[1], "AACCGG", "IIIIII"),
                                         (names[2], "GGTTAA", "IIIIII"),
                                         (names[3], "CCCCCC", "IIIIII")])
    i2 = write_fastq("run_I2.fastq.gz", [(names[0], "TTAACC", "IIIIII"),
                                         (names[1], "CCAACC", "IIIIII"),
                                         (names[2], "TTGGCC", "IIIIII"),
                                         (names[3], "TTAACC", "IIIIII")])
    return {"r1": r1, "r2": r2, "i1": i1, "i2": i2}


# Markers for test organization
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
