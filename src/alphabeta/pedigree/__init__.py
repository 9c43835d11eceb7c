"""Pedigree loading and pairwise divergence between sampled methylomes."""

from alphabeta.pedigree.methylome import (
    load_methylome,
    status_to_numeric,
    sample_divergence,
    proportion_unmethylated,
)
from alphabeta.pedigree.graph import Pedigree, PedigreeNode

__all__ = [
    "load_methylome",
    "status_to_numeric",
    "sample_divergence",
    "proportion_unmethylated",
    "Pedigree",
    "PedigreeNode",
]
