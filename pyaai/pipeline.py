"""Run the whole AAI computation for a set of genomes.

Collaborators are passed in: ``preprocessor(path, workdir)`` returns a
PreparedGenome, and ``aligner`` has ``make_db(genome)`` and
``align(db_genome, query_genome)``.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from itertools import combinations, permutations

from pyaai.aai import one_way_aai, two_way_aai
from pyaai.best_hits import ACCEPT_ALL, reduce_best_hits
from pyaai.preprocess import check_files, preprocess
from pyaai.report import aai_strings, write_rbh, write_report

logger = logging.getLogger(__name__)


def _run_all(executor, calls, on_result=None):
    """Submit every call and hand (key, result) to on_result as they finish.

    The first failure cancels whatever hasn't started and is re-raised.
    Finished futures are dropped as they are handled, so a result lives no
    longer than its on_result call.
    """
    futures = {executor.submit(fn, *args): key for key, (fn, args) in calls.items()}
    try:
        for future in as_completed(futures):
            key = futures.pop(future)
            if on_result is not None:
                on_result(key, future.result())
            else:
                future.result()
    except Exception:
        for future in futures:
            future.cancel()
        raise


def search_all(genomes, aligner, jobs=1, hit_filter=ACCEPT_ALL):
    """Best-hit tables for every ordered pair of distinct genomes.

    The key (a, b) holds the best hits of a's ORFs against b.
    """
    names = list(genomes)
    best_hits = {}

    with ThreadPoolExecutor(max_workers=jobs) as executor:
        logger.info("Building databases...")
        db_calls = {name: (aligner.make_db, (genomes[name],)) for name in names}
        _run_all(executor, db_calls)

        logger.info("Running searches...")
        search_calls = {
            (a, b): (aligner.align, (genomes[b], genomes[a]))
            for a, b in permutations(names, 2)
        }

        def reduce_pair(pair, hits):
            a, b = pair
            best_hits[pair] = reduce_best_hits(
                hits, pair, hit_filter,
                query_lengths=genomes[a].lengths,
                subject_lengths=genomes[b].lengths,
            )

        _run_all(executor, search_calls, reduce_pair)

    return best_hits


def aggregate(genomes, best_hits):
    names = list(genomes)

    one_way = {}
    for a, b in permutations(names, 2):
        one_way[(a, b)] = one_way_aai(best_hits[(a, b)], genomes[a].total, a, b)

    two_way = {}
    for a, b in combinations(names, 2):
        two_way[(a, b)] = two_way_aai(best_hits[(a, b)], best_hits[(b, a)], a, b)

    return one_way, two_way


def run_pipeline(infiles, outfile, aligner, workdir, preprocessor=preprocess,
                 hit_filter=ACCEPT_ALL, jobs=1, decimals=2, header=False,
                 rbh_file=None):
    """Compute AAI for every genome pair and write the report to outfile."""
    check_files(infiles)

    logger.info("Renumbering FASTA files...")
    genomes = {}
    for path in infiles:
        genome = preprocessor(path, workdir)
        genomes[genome.name] = genome

    if len(genomes) < 2:
        logger.warning("Only one genome given, there are no pairs to compare")

    best_hits = search_all(genomes, aligner, jobs, hit_filter)
    one_way, two_way = aggregate(genomes, best_hits)

    lines = aai_strings(one_way, two_way, decimals)
    write_report(lines, outfile, header)
    logger.info(f"Results saved to: {outfile}")

    if rbh_file:
        write_rbh(two_way, genomes, rbh_file)
        logger.info(f"Reciprocal best hits saved to: {rbh_file}")

    return lines
