"""Run BLASTP or DIAMOND for a pair of genomes."""

import logging
import os
import shutil
import subprocess

from pyaai.errors import AlignerInvocationError, MalformedRecord
from pyaai.hits import read_btab

logger = logging.getLogger(__name__)

PROGRAMS = {
    "blast": ["makeblastdb", "blastp"],
    "diamond": ["diamond"],
}


def check_programs(program):
    for exe in PROGRAMS[program]:
        if shutil.which(exe) is None:
            raise AlignerInvocationError(f"Required program not found in PATH: {exe}")


def run(cmd):
    logger.debug("RUN: " + " ".join(cmd))
    try:
        return subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise AlignerInvocationError(f"Required program not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        message = (e.stderr or "").strip().splitlines()
        detail = message[-1] if message else f"exit status {e.returncode}"
        raise AlignerInvocationError(f"{cmd[0]} failed: {detail}") from e


class Aligner:
    """All-vs-all protein search with BLASTP or DIAMOND.

    Databases and btab files are written to ``workdir``.
    """

    def __init__(self, workdir, program="blast", threads=1, evalue=None):
        if program not in PROGRAMS:
            raise ValueError(f"Unknown search program: {program}")
        self.workdir = workdir
        self.program = program
        self.threads = threads
        self.evalue = evalue

    def db_path(self, genome):
        return os.path.join(self.workdir, f"{genome.name}.db")

    def btab_path(self, db_genome, query_genome):
        return os.path.join(self.workdir, f"{query_genome.name}_vs_{db_genome.name}.btab")

    # =====================================================
    # BUILD DATABASE
    # =====================================================
    def make_db(self, genome):
        dbname = self.db_path(genome)
        if self.program == "diamond":
            run(["diamond", "makedb", "--in", genome.cleaned_path, "-d", dbname])
        else:
            run(["makeblastdb", "-in", genome.cleaned_path,
                 "-dbtype", "prot", "-out", dbname])
        return dbname

    # =====================================================
    # RUN SEARCH
    # =====================================================
    def search_command(self, db_genome, query_genome, out):
        db = self.db_path(db_genome)
        if self.program == "diamond":
            cmd = [
                "diamond", "blastp",
                "--query", query_genome.cleaned_path,
                "--db", db,
                "--threads", str(self.threads),
                "--sensitive",
                "--outfmt", "6",
                "--out", out
            ]
            if self.evalue is not None:
                cmd += ["--evalue", str(self.evalue)]
        else:
            cmd = [
                "blastp",
                "-query", query_genome.cleaned_path,
                "-db", db,
                "-num_threads", str(self.threads),
                "-outfmt", "6",
                "-max_target_seqs", "1",
                "-out", out
            ]
            if self.evalue is not None:
                cmd += ["-evalue", str(self.evalue)]
        return cmd

    def align(self, db_genome, query_genome):
        """Search every ORF of query_genome against db_genome's database."""
        out = self.btab_path(db_genome, query_genome)
        run(self.search_command(db_genome, query_genome, out))

        try:
            hits = read_btab(out)
        except MalformedRecord as e:
            raise AlignerInvocationError(
                f"Unparsable {self.program} output for "
                f"{query_genome.name} vs {db_genome.name}: {e}"
            ) from e

        logger.info(f"{query_genome.name} vs {db_genome.name}: {len(hits)} hits")
        return hits
