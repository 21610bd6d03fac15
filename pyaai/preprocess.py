"""Input checks and FASTA cleaning."""

import logging
import os
from typing import Dict, NamedTuple

from Bio import SeqIO

from pyaai.errors import EmptyInput, InputError, UnreadableFile

logger = logging.getLogger(__name__)


class PreparedGenome(NamedTuple):
    name: str
    cleaned_path: str
    lengths: Dict[str, int]
    id_map: Dict[str, str]

    @property
    def total(self):
        return len(self.lengths)


def genome_name(path):
    return os.path.splitext(os.path.basename(path))[0]


def check_files(paths):
    """Every input has to be a readable file with a distinct genome name."""
    if not paths:
        raise InputError("No infiles given")

    names = {}
    for path in paths:
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            raise UnreadableFile(f"Cannot read infile {path}")

        name = genome_name(path)
        if name in names:
            raise InputError(
                f"Infiles {names[name]} and {path} have the same genome name {name}"
            )
        names[name] = path


# =====================================================
# FASTA RENUMBERING
# =====================================================
def preprocess(path, workdir) -> PreparedGenome:
    """Write a cleaned, renumbered copy of a protein FASTA file.

    Records are renamed 1..n so the search program never has to deal with
    the original headers; ``id_map`` takes the new IDs back. Stop
    characters are removed and empty records dropped.
    """
    name = genome_name(path)
    cleaned_path = os.path.join(workdir, f"{name}.clean.faa")

    id_map = {}
    lengths = {}
    counter = 1

    try:
        with open(path, encoding="utf-8") as handle, open(cleaned_path, "w") as out:
            for record in SeqIO.parse(handle, "fasta"):
                seq = str(record.seq).replace("*", "").upper()
                if not seq:
                    logger.debug(f"{name}: skipping empty record {record.id}")
                    continue

                out.write(f">{counter}\n{seq}\n")
                id_map[str(counter)] = record.id
                lengths[str(counter)] = len(seq)
                counter += 1
    except (OSError, ValueError) as e:
        raise UnreadableFile(f"Cannot read infile {path}: {e}") from e

    if not lengths:
        raise EmptyInput(f"No sequences found in {path}")

    logger.debug(f"{name}: {len(lengths)} sequences")
    return PreparedGenome(name, cleaned_path, lengths, id_map)
