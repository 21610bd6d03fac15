"""All-vs-all Average Amino-acid Identity (AAI) from protein FASTA files."""

__version__ = "0.2.0"
