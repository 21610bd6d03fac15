"""Hit records and the btab (BLAST ``-outfmt 6``) reader."""

import math
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from pyaai.errors import MalformedRecord

# =====================================================
# BTAB COLUMNS
# =====================================================
BTAB_COLUMNS = [
    "qseqid", "sseqid", "pident", "length", "mismatch", "gapopen",
    "qstart", "qend", "sstart", "send", "evalue", "bitscore"
]

# query, subject, identity, alignment length, e-value
SHORT_COLUMNS = ["qseqid", "sseqid", "pident", "length", "evalue"]


@dataclass(frozen=True)
class HitRecord:
    """One row of a search result."""

    query: str
    subject: str
    identity: float
    length: int
    evalue: float
    bitscore: Optional[float] = None

    @classmethod
    def from_fields(cls, row) -> "HitRecord":
        """Build a record from a btab line or a sequence of its fields.

        Both the full 12 column btab layout and the short
        ``query subject identity length evalue`` layout are accepted.
        """
        if isinstance(row, HitRecord):
            return row
        if isinstance(row, str):
            fields = row.rstrip("\r\n").split("\t")
        else:
            try:
                fields = [_field(x) for x in row]
            except TypeError:
                raise MalformedRecord(row, "not a row") from None

        if len(fields) == len(BTAB_COLUMNS):
            values = dict(zip(BTAB_COLUMNS, fields))
        elif len(fields) == len(SHORT_COLUMNS):
            values = dict(zip(SHORT_COLUMNS, fields))
        else:
            raise MalformedRecord(row, f"expected 5 or 12 fields, got {len(fields)}")

        empty = [name for name, value in values.items() if value == ""]
        if empty:
            raise MalformedRecord(row, f"empty field {empty[0]}")

        identity = _to_float(row, values, "pident")
        if not 0 <= identity <= 100:
            raise MalformedRecord(row, f"percent identity {identity} out of range")

        length = _to_float(row, values, "length")
        if length <= 0 or not length.is_integer():
            raise MalformedRecord(row, f"bad alignment length {values['length']}")

        evalue = _to_float(row, values, "evalue")
        if evalue < 0:
            raise MalformedRecord(row, f"negative e-value {evalue}")

        bitscore = None
        if "bitscore" in values:
            bitscore = _to_float(row, values, "bitscore")

        return cls(
            query=values["qseqid"],
            subject=values["sseqid"],
            identity=identity,
            length=int(length),
            evalue=evalue,
            bitscore=bitscore,
        )


def _field(value):
    # pandas pads short rows with NaN
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _to_float(row, values, name):
    try:
        value = float(values[name])
    except ValueError:
        raise MalformedRecord(row, f"{name} is not a number: {values[name]!r}") from None
    if math.isnan(value):
        raise MalformedRecord(row, f"{name} is NaN")
    return value


# =====================================================
# READ BTAB
# =====================================================
def read_btab(path):
    """Parse a btab file into a list of HitRecord, in file order.

    An empty file is a valid "no hits" result.
    """
    try:
        df = pd.read_csv(path, sep="\t", header=None, dtype=str,
                         keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise MalformedRecord(str(path), str(e).strip()) from e

    return [HitRecord.from_fields(row) for row in df.itertuples(index=False, name=None)]
