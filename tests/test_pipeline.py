"""End-to-end runs with a stand-in for the search program."""

import gc
import threading
import weakref

import pytest

from pyaai import pipeline
from pyaai.best_hits import HitFilter
from pyaai.cli import main
from pyaai.errors import AlignerInvocationError
from pyaai.hits import HitRecord
from pyaai.pipeline import run_pipeline, search_all
from pyaai.preprocess import PreparedGenome


class FakeAligner:
    """Returns canned hits keyed by (query genome, database genome)."""

    def __init__(self, hits=None, fail_on=None):
        self.hits = hits or {}
        self.fail_on = fail_on
        self.dbs = []
        self.lock = threading.Lock()

    def make_db(self, genome):
        with self.lock:
            self.dbs.append(genome.name)

    def align(self, db_genome, query_genome):
        pair = (query_genome.name, db_genome.name)
        if pair == self.fail_on:
            raise AlignerInvocationError(f"blastp failed for {pair}")
        return list(self.hits.get(pair, []))


def hit(query, subject, identity, length=100):
    return HitRecord(query, subject, identity, length, 1e-20, 200.0)


@pytest.fixture
def genomes(tmp_path):
    a = tmp_path / "alpha.faa"
    a.write_text(">a1\nMKVLAAGG\n>a2\nMSTNPKPQ\n>a3\nMQQQ\n")
    b = tmp_path / "beta.faa"
    b.write_text(">b1\nMKVLAAGA\n>b2\nMSTNPKPR\n")
    return [str(a), str(b)]


HITS = {
    ("alpha", "beta"): [hit("1", "1", 95.0), hit("2", "2", 80.0), hit("2", "1", 40.0)],
    ("beta", "alpha"): [hit("1", "1", 95.0), hit("2", "3", 70.0)],
}


def test_run_pipeline_report(genomes, tmp_path):
    workdir = tmp_path / "work"
    workdir.mkdir()
    outfile = tmp_path / "out.aai.txt"
    aligner = FakeAligner(HITS)

    lines = run_pipeline(genomes, str(outfile), aligner, str(workdir), jobs=2)

    assert sorted(aligner.dbs) == ["alpha", "beta"]
    assert lines == ["alpha\tbeta\t87.50\t7.50\t2\t82.50\t12.50\t2\t95.00\t0.00\t1"]
    assert outfile.read_text().splitlines() == lines


def test_run_pipeline_applies_filter(genomes, tmp_path):
    outfile = tmp_path / "out.aai.txt"

    lines = run_pipeline(genomes, str(outfile), FakeAligner(HITS), str(tmp_path),
                         hit_filter=HitFilter(min_identity=90))

    assert lines == ["alpha\tbeta\t95.00\t0.00\t1\t95.00\t0.00\t1\t95.00\t0.00\t1"]


def test_cli_writes_report(genomes, tmp_path):
    outdir = tmp_path / "results" / "nested"

    code = main(["--infiles", *genomes, "--outdir", str(outdir), "--rbh", "--header"],
                aligner=FakeAligner(HITS))

    assert code == 0
    report = (outdir / "aai_scores.aai.txt").read_text().splitlines()
    assert report[0].startswith("# genome_a\tgenome_b")
    assert report[1].startswith("alpha\tbeta\t87.50")
    rbh = (outdir / "aai_scores.rbh.tsv").read_text().splitlines()
    assert rbh[1] == "alpha\ta1\tbeta\tb1\t95.0"
    # temporary working directory is removed
    assert sorted(p.name for p in outdir.iterdir()) == ["aai_scores.aai.txt", "aai_scores.rbh.tsv"]


def test_cli_zero_cross_hits(genomes, tmp_path):
    code = main(["--infiles", *genomes, "--outdir", str(tmp_path), "--basename", "none"],
                aligner=FakeAligner())

    assert code == 0
    lines = (tmp_path / "none.aai.txt").read_text().splitlines()
    assert lines == ["alpha\tbeta\tNA\tNA\t0\tNA\tNA\t0\tNA\tNA\t0"]


def test_cli_output_is_identical_between_runs(genomes, tmp_path):
    args = ["--infiles", *genomes, "--outdir", str(tmp_path), "-j", "3"]

    assert main(args, aligner=FakeAligner(HITS)) == 0
    first = (tmp_path / "aai_scores.aai.txt").read_bytes()
    assert main(args, aligner=FakeAligner(HITS)) == 0
    second = (tmp_path / "aai_scores.aai.txt").read_bytes()

    assert first == second


def test_cli_no_infiles(tmp_path, capsys):
    code = main(["--outdir", str(tmp_path)], aligner=FakeAligner())

    assert code != 0
    assert "No infiles given" in capsys.readouterr().err


def test_cli_unreadable_infile(tmp_path):
    code = main(["--infiles", str(tmp_path / "missing.faa"), "--outdir", str(tmp_path)],
                aligner=FakeAligner())

    assert code != 0


def test_cli_failed_search_leaves_no_report(genomes, tmp_path):
    code = main(["--infiles", *genomes, "--outdir", str(tmp_path), "--keep-tmp"],
                aligner=FakeAligner(HITS, fail_on=("beta", "alpha")))

    assert code != 0
    assert not (tmp_path / "aai_scores.aai.txt").exists()
    assert (tmp_path / "aai_scores_tmp").is_dir()


def test_cli_rejects_bad_jobs(genomes):
    with pytest.raises(SystemExit) as exc:
        main(["--infiles", *genomes, "--jobs", "0"])
    assert exc.value.code == 2


def test_cli_infiles_without_values(tmp_path, capsys):
    code = main(["--infiles", "--outdir", str(tmp_path)], aligner=FakeAligner())

    assert code == 1
    assert "No infiles given" in capsys.readouterr().err


def test_cli_outdir_under_regular_file(genomes, tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory\n")

    code = main(["--infiles", *genomes, "--outdir", str(blocker / "sub")],
                aligner=FakeAligner(HITS))

    assert code == 1
    err = capsys.readouterr().err.strip().splitlines()
    assert len(err) == 1
    assert "Not a directory" in err[0]


class HitList(list):
    pass


class ListAligner(FakeAligner):
    def align(self, db_genome, query_genome):
        return HitList(super().align(db_genome, query_genome))


def test_hit_lists_are_released_after_reduction(monkeypatch):
    names = ["g1", "g2", "g3", "g4"]
    genomes = {n: PreparedGenome(n, f"{n}.faa", {"1": 100}, {"1": "p1"}) for n in names}
    hits = {
        (a, b): [hit("1", "1", 90.0)]
        for a in names for b in names if a != b
    }
    reduced = []
    still_alive = []
    reduce_best_hits = pipeline.reduce_best_hits

    def tracking_reduce(pair_hits, *args, **kwargs):
        gc.collect()
        still_alive.append(sum(ref() is not None for ref in reduced))
        reduced.append(weakref.ref(pair_hits))
        return reduce_best_hits(pair_hits, *args, **kwargs)

    monkeypatch.setattr(pipeline, "reduce_best_hits", tracking_reduce)

    best_hits = search_all(genomes, ListAligner(hits), jobs=2)

    assert len(best_hits) == 12
    assert still_alive == [0] * 12
