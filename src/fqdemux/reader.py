#!/usr/bin/env python3

"""
Lock-step reading of the primary and index read files.

Records are aligned purely by position.  Identifiers are compared as a
diagnostic only: a mismatch is reported and the tuple is still emitted.
"""

import logging
from typing import Iterator, List, NamedTuple, Optional, Tuple

from .records import Record, RecordStream

IDENTIFIER_COMPARE_LIMIT = 200


class Role:
    PRIMARY1 = "primary1"
    INDEX1 = "index1"
    PRIMARY2 = "primary2"
    INDEX2 = "index2"


class RecordTuple(NamedTuple):
    primary1: Record
    index1: Record
    primary2: Optional[Record] = None
    index2: Optional[Record] = None


def identifiers_match(a: str, b: str, limit: int = IDENTIFIER_COMPARE_LIMIT) -> bool:
    return a[:limit] == b[:limit]


class SynchronizedReader:
    """Advance 2 to 4 record streams together, yielding one RecordTuple per step.

    Iteration ends as soon as any configured stream is exhausted; a tuple is
    only emitted when every configured stream produced a record.
    """

    def __init__(self, primary1: RecordStream, index1: RecordStream,
                 primary2: Optional[RecordStream] = None, index2: Optional[RecordStream] = None):
        self.primary1 = primary1
        self.index1 = index1
        self.primary2 = primary2
        self.index2 = index2
        self.tuples_read = 0
        self.mismatches = 0
        self.exhausted_role: Optional[str] = None

    def _active_streams(self) -> List[Tuple[str, RecordStream]]:
        streams = [(Role.PRIMARY1, self.primary1), (Role.INDEX1, self.index1)]
        if self.primary2 is not None:
            streams.append((Role.PRIMARY2, self.primary2))
        if self.index2 is not None:
            streams.append((Role.INDEX2, self.index2))
        return streams

    def __iter__(self) -> Iterator[RecordTuple]:
        streams = self._active_streams()
        while True:
            records = {}
            for role, stream in streams:
                record = next(stream, None)
                if record is None:
                    self.exhausted_role = role
                    logging.debug(f"{role} input {stream.path} exhausted after {self.tuples_read} records")
                    return
                records[role] = record

            read_tuple = RecordTuple(records[Role.PRIMARY1], records[Role.INDEX1],
                                     records.get(Role.PRIMARY2), records.get(Role.INDEX2))
            self.tuples_read += 1
            self._check_identifiers(read_tuple)
            yield read_tuple

    def _check_identifiers(self, read_tuple: RecordTuple) -> None:
        reference = read_tuple.primary1.identifier
        mismatched = []
        for role in (Role.INDEX1, Role.PRIMARY2, Role.INDEX2):
            record = getattr(read_tuple, role)
            if record is not None and not identifiers_match(reference, record.identifier):
                mismatched.append((role, record.identifier))

        if mismatched:
            self.mismatches += 1
            details = ", ".join(f"{role} name: {name}" for role, name in mismatched)
            logging.warning(f"Name mismatch at record {self.tuples_read}: "
                            f"{Role.PRIMARY1} name: {reference}, {details}")
