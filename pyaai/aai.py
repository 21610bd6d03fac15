"""One-way and two-way AAI from best-hit tables."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class PairwiseAai:
    """One-way AAI of query genome A against subject genome B.

    ``mean`` and ``stdev`` are None when there are no best hits.
    """

    query_genome: Optional[str]
    subject_genome: Optional[str]
    count: int
    mean: Optional[float]
    stdev: Optional[float]
    total: int


@dataclass(frozen=True)
class SymmetricAai:
    """Two-way AAI over the reciprocal best hits of genomes A and B.

    ``pairs`` holds ``(query in A, subject in B, identity)`` for each
    reciprocal pair.
    """

    genome_a: Optional[str]
    genome_b: Optional[str]
    pairs: Tuple[Tuple[str, str, float], ...]
    mean: Optional[float]
    stdev: Optional[float]

    @property
    def count(self) -> int:
        return len(self.pairs)


# =====================================================
# COMPUTE AAI
# =====================================================
def identity_stats(identities):
    """Mean and population standard deviation, or (None, None) if empty."""
    if len(identities) == 0:
        return None, None

    values = np.asarray(identities, dtype=float)
    return float(values.mean()), float(values.std(ddof=0))


def one_way_aai(best_hits, total_query_count, query_genome=None, subject_genome=None):
    count = len(best_hits)
    if total_query_count < count:
        raise ValueError(
            f"{count} best hits but only {total_query_count} query sequences"
        )

    mean, sd = identity_stats([hit.identity for hit in best_hits.values()])

    return PairwiseAai(
        query_genome=query_genome,
        subject_genome=subject_genome,
        count=count,
        mean=mean,
        stdev=sd,
        total=total_query_count,
    )


def two_way_aai(best_hits_ab, best_hits_ba, genome_a=None, genome_b=None):
    """Keep the A -> B best hits whose subject's own best hit points back.

    A query q with best hit s is reciprocal when ``best_hits_ba[s].subject``
    is q. The identity of a pair is taken from the A -> B hit.
    """
    pairs = []
    for query, hit in best_hits_ab.items():
        back = best_hits_ba.get(hit.subject)
        if back is not None and back.subject == query:
            pairs.append((query, hit.subject, hit.identity))

    mean, sd = identity_stats([pid for _, _, pid in pairs])

    return SymmetricAai(
        genome_a=genome_a,
        genome_b=genome_b,
        pairs=tuple(pairs),
        mean=mean,
        stdev=sd,
    )
