"""Reduce a genome pair's hit list to one best hit per query sequence."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pyaai.hits import HitRecord

logger = logging.getLogger(__name__)


# =====================================================
# HIT FILTER
# =====================================================
@dataclass(frozen=True)
class HitFilter:
    """Thresholds a hit has to pass before it can be a best hit.

    The defaults accept everything.
    """

    min_identity: float = 0.0
    min_length: int = 0
    min_length_fraction: float = 0.0
    min_bitscore: float = 0.0
    max_evalue: Optional[float] = None

    def accepts(self, hit, query_lengths=None, subject_lengths=None):
        if hit.identity < self.min_identity:
            return False
        if hit.length < self.min_length:
            return False
        if self.max_evalue is not None and hit.evalue > self.max_evalue:
            return False
        if self.min_bitscore and (hit.bitscore is None or hit.bitscore < self.min_bitscore):
            return False

        if self.min_length_fraction:
            # fraction of the shorter of the two sequences
            min_len = min((query_lengths or {}).get(hit.query, 0),
                          (subject_lengths or {}).get(hit.subject, 0))
            if hit.length < self.min_length_fraction * min_len:
                return False

        return True


ACCEPT_ALL = HitFilter()


# =====================================================
# BEST HITS
# =====================================================
def _beats(hit, current):
    if hit.identity != current.identity:
        return hit.identity > current.identity
    return hit.length > current.length


def reduce_best_hits(hits, direction=None, hit_filter=ACCEPT_ALL,
                     query_lengths=None, subject_lengths=None) -> Dict[str, HitRecord]:
    """Keep the best hit of every query.

    The best hit has the highest percent identity, then the longest
    alignment; remaining ties go to the hit seen first. Rows that are not
    HitRecords yet are parsed on the way and a bad one raises
    MalformedRecord.
    """
    best = {}
    seen = 0
    rejected = 0

    for row in hits:
        hit = HitRecord.from_fields(row)
        seen += 1

        if not hit_filter.accepts(hit, query_lengths, subject_lengths):
            rejected += 1
            continue

        current = best.get(hit.query)
        if current is None or _beats(hit, current):
            best[hit.query] = hit

    if direction is not None:
        logger.debug(f"{direction[0]} -> {direction[1]}: {seen} hits, "
                     f"{rejected} filtered, {len(best)} best hits")

    return best
