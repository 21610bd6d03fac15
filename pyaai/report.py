"""Render AAI results and write them out."""

import os
import tempfile

import pandas as pd

NA = "NA"

COLUMNS = [
    "genome_a", "genome_b",
    "one_way_ab_aai", "one_way_ab_sd", "one_way_ab_hits",
    "one_way_ba_aai", "one_way_ba_sd", "one_way_ba_hits",
    "two_way_aai", "two_way_sd", "two_way_hits",
]


def _fmt(value, decimals):
    if value is None:
        return NA
    return f"{value:.{decimals}f}"


def _stats(result, decimals):
    if result is None:
        return [NA, NA, "0"]
    return [_fmt(result.mean, decimals), _fmt(result.stdev, decimals), str(result.count)]


def genome_pairs(one_way, two_way):
    """Unordered genome pairs, in the order they are first seen."""
    pairs = []
    seen = set()
    for a, b in list(two_way) + list(one_way):
        if (a, b) in seen or (b, a) in seen:
            continue
        seen.add((a, b))
        pairs.append((a, b))
    return pairs


def aai_strings(one_way, two_way, decimals=2):
    """One tab-separated line per genome pair.

    ``one_way`` is keyed by ordered (query genome, subject genome) pairs
    and ``two_way`` by (genome A, genome B). A pair that only shows up in
    one of them still gets a line, with NA for whatever is missing.
    """
    lines = []
    for a, b in genome_pairs(one_way, two_way):
        two = two_way.get((a, b))
        if two is None:
            two = two_way.get((b, a))

        fields = [a, b]
        fields += _stats(one_way.get((a, b)), decimals)
        fields += _stats(one_way.get((b, a)), decimals)
        fields += _stats(two, decimals)
        lines.append("\t".join(fields))

    return lines


# =====================================================
# OUTPUT
# =====================================================
def write_report(lines, path, header=False):
    """Write the report lines to path, replacing it only once fully written."""
    outdir = os.path.dirname(os.path.abspath(path))
    fd, tmp = tempfile.mkstemp(prefix=".aai.", suffix=".tmp", dir=outdir)
    try:
        with os.fdopen(fd, "w") as f:
            if header:
                f.write("# " + "\t".join(COLUMNS) + "\n")
            for line in lines:
                f.write(line + "\n")
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


def write_rbh(two_way, genomes, path):
    """Save the reciprocal best hits of every pair, under their original IDs."""
    rows = []
    for (a, b), result in two_way.items():
        for q, s, pid in result.pairs:
            rows.append([a, genomes[a].id_map.get(q, q), b, genomes[b].id_map.get(s, s), pid])

    rbh_df = pd.DataFrame(
        rows,
        columns=["genome_a", "genome_a_protein", "genome_b", "genome_b_protein", "pident"]
    )
    rbh_df.to_csv(path, sep="\t", index=False)
