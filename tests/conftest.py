"""Shared fixtures: small pedigrees written to temporary directories."""

import os

import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

LOCATIONS = (100, 200, 300, 400)


def write_methylome(path, statuses, posteriors=None, meth_lvls=None):
    """Headerless tab separated methylome with one CG site per status."""
    posteriors = posteriors or [0.999] * len(statuses)
    meth_lvls = meth_lvls or [0.9 if s == "M" else 0.05 for s in statuses]
    lines = []
    for location, status, posterior, lvl in zip(LOCATIONS, statuses, posteriors, meth_lvls):
        lines.append(
            "\t".join(
                ["1", str(location), "+", "CG", "5", "10", str(posterior), status, str(lvl), "CGA"]
            )
        )
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def pedigree_dir(tmp_path):
    """
    G0 (gen 0, sampled) -> G1 (gen 1, not sampled) -> A, B (gen 2, sampled).

    Statuses:
        G0: U U M M
        A:  U M M M   (1 site differs from G0 by 2 alleles)
        B:  U U M I   (1 site differs from G0 by 1 allele)
    """
    write_methylome(tmp_path / "G0.txt", ["U", "U", "M", "M"])
    write_methylome(tmp_path / "A.txt", ["U", "M", "M", "M"])
    write_methylome(tmp_path / "B.txt", ["U", "U", "M", "I"])

    (tmp_path / "nodelist.txt").write_text(
        "filename node gen meth\n"
        "G0.txt G0 0 Y\n"
        "G1.txt G1 1 N\n"
        "A.txt A 2 Y\n"
        "B.txt B 2 Y\n"
    )
    (tmp_path / "edgelist.txt").write_text(
        "from to\n"
        "G0 G1\n"
        "G1 A\n"
        "G1 B\n"
    )
    return tmp_path


@pytest.fixture
def methylome_writer():
    return write_methylome
