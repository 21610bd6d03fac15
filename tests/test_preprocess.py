"""Tests for input checks and FASTA cleaning."""

import pytest

from pyaai.errors import EmptyInput, InputError, UnreadableFile
from pyaai.preprocess import check_files, genome_name, preprocess


def test_preprocess_renumbers_and_cleans(tmp_path):
    faa = tmp_path / "genome_1.faa"
    faa.write_text(">gene_a some description\nMKV*\n>gene_b\n*\n>gene_c\nmkvlaa\n")
    workdir = tmp_path / "work"
    workdir.mkdir()

    genome = preprocess(str(faa), str(workdir))

    assert genome.name == "genome_1"
    assert genome.lengths == {"1": 3, "2": 6}
    assert genome.id_map == {"1": "gene_a", "2": "gene_c"}
    assert genome.total == 2
    with open(genome.cleaned_path) as f:
        assert f.read() == ">1\nMKV\n>2\nMKVLAA\n"


def test_preprocess_without_sequences_is_empty_input(tmp_path):
    faa = tmp_path / "empty.faa"
    faa.write_text("")

    with pytest.raises(EmptyInput):
        preprocess(str(faa), str(tmp_path))


def test_preprocess_missing_file_is_unreadable(tmp_path):
    with pytest.raises(UnreadableFile):
        preprocess(str(tmp_path / "missing.faa"), str(tmp_path))


def test_check_files(tmp_path):
    a = tmp_path / "a.faa"
    a.write_text(">1\nMKV\n")
    other = tmp_path / "other"
    other.mkdir()
    a_again = other / "a.faa"
    a_again.write_text(">1\nMKV\n")

    check_files([str(a)])

    with pytest.raises(InputError, match="No infiles given"):
        check_files([])
    with pytest.raises(UnreadableFile):
        check_files([str(a), str(tmp_path / "missing.faa")])
    with pytest.raises(InputError, match="same genome name"):
        check_files([str(a), str(a_again)])


def test_genome_name():
    assert genome_name("/data/proteins/Strep_100.faa") == "Strep_100"


def test_preprocess_undecodable_file_is_unreadable(tmp_path):
    faa = tmp_path / "binary.faa"
    faa.write_bytes(b">gene_a\n\xff\xfe\x00\x81MKV\n")

    with pytest.raises(UnreadableFile):
        preprocess(str(faa), str(tmp_path))
