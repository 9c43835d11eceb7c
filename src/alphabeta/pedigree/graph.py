"""
Pedigree graph built from a node list and an edge list.

Node list (first line is a header):

    filename  node  gen  meth

``meth`` is ``Y`` when a methylome file exists for the node; relative
filenames are resolved against the node list's directory.

Edge list (first line is a header):

    from  to  [dt]

Each node has at most one parent in use (the first incoming edge), which
is enough to find last common ancestors in selfing or clonal lineages.
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from alphabeta.core.data import PairwiseDivergenceTable
from alphabeta.errors import PedigreeError
from alphabeta.pedigree.methylome import (
    load_methylome,
    passes_filter,
    proportion_unmethylated,
    sample_divergence,
)

logger = logging.getLogger(__name__)

NODE_COLUMNS = ["filename", "node", "gen", "meth"]
EDGE_COLUMNS = ["from", "to", "dt"]
LIST_SEPARATOR = r"[\t, ]+"


@dataclass
class PedigreeNode:
    """
    One sample (or unsampled ancestor) of the pedigree.

    Attributes:
        name: Node name used by the edge list
        generation: Generation of the node
        filename: Methylome file named in the node list
        sites: Loaded methylome, None for nodes without methylation data
    """

    name: str
    generation: int
    filename: str
    sites: Optional[pd.DataFrame] = None

    @property
    def has_sites(self) -> bool:
        return self.sites is not None

    def avg_meth_lvl(self) -> Optional[float]:
        if self.sites is None or "rc.meth.lvl" not in self.sites.columns:
            return None
        return float(self.sites["rc.meth.lvl"].mean())


def _read_list(path: Path, names: List[str]) -> pd.DataFrame:
    if not path.exists():
        raise PedigreeError(f"Could not open {path}")
    df = pd.read_csv(
        path,
        sep=LIST_SEPARATOR,
        engine="python",
        header=None,
        skiprows=1,
        names=names,
        index_col=False,
        dtype=str,
        skip_blank_lines=True,
    )
    return df.dropna(how="all")


class Pedigree:
    """
    Sampled lineages and their methylomes.

    Usage:
        pedigree = Pedigree.from_files("nodelist.txt", "edgelist.txt")
        table = pedigree.divergence_table()
        p0uu = pedigree.p0uu()
    """

    def __init__(
        self,
        nodes: Sequence[PedigreeNode],
        edges: Sequence[tuple] = (),
        posterior_max_filter: float = 0.99,
    ):
        self.nodes: Dict[str, PedigreeNode] = {}
        for node in nodes:
            if node.name in self.nodes:
                raise PedigreeError(f"Node {node.name!r} appears twice in the node list")
            self.nodes[node.name] = node
        self.posterior_max_filter = posterior_max_filter

        self._parents: Dict[str, str] = {}
        self.edges: List[tuple] = []
        for edge in edges:
            self.add_edge(*edge)

    @classmethod
    def from_files(
        cls,
        nodelist: Union[str, Path],
        edgelist: Union[str, Path],
        posterior_max_filter: float = 0.99,
        column_names: Optional[Sequence[str]] = None,
        progress: Optional[Callable[[], None]] = None,
    ) -> "Pedigree":
        """
        Build a pedigree and load the methylomes of its sampled nodes.

        Args:
            nodelist: Node list file
            edgelist: Edge list file
            posterior_max_filter: Minimum call posterior used downstream
            column_names: Methylome column names passed to load_methylome
            progress: Hook called once per node list entry

        Raises:
            PedigreeError: On malformed lists, missing files or unknown nodes
        """
        nodelist = Path(nodelist)
        edgelist = Path(edgelist)

        node_df = _read_list(nodelist, NODE_COLUMNS)
        if node_df.empty:
            raise PedigreeError(f"No nodes could be parsed from {nodelist}")

        nodes = []
        for _, row in node_df.iterrows():
            for column in NODE_COLUMNS:
                if pd.isna(row[column]):
                    raise PedigreeError(f"Node list line lacks a {column!r} value: {row.tolist()}")
            try:
                generation = int(row["gen"])
            except ValueError as exc:
                raise PedigreeError(f"The generation {row['gen']!r} could not be parsed") from exc

            sites = None
            if row["meth"].strip() == "Y":
                path = Path(row["filename"])
                if not path.is_absolute():
                    path = nodelist.parent / path
                if not path.exists():
                    raise PedigreeError(f"The methylation data file {path} could not be opened")
                sites = load_methylome(path, column_names)

            nodes.append(
                PedigreeNode(
                    name=row["node"],
                    generation=generation,
                    filename=row["filename"],
                    sites=sites,
                )
            )
            if progress is not None:
                progress()

        edge_df = _read_list(edgelist, EDGE_COLUMNS)
        edges = []
        for _, row in edge_df.iterrows():
            if pd.isna(row["from"]) or pd.isna(row["to"]):
                raise PedigreeError(f"Edge list line needs 'from' and 'to': {row.tolist()}")
            try:
                dt = 1 if pd.isna(row["dt"]) else int(row["dt"])
            except ValueError as exc:
                raise PedigreeError(f"The time difference {row['dt']!r} could not be parsed") from exc
            edges.append((row["from"], row["to"], dt))

        pedigree = cls(nodes, edges, posterior_max_filter=posterior_max_filter)
        logger.info(
            f"Built pedigree with {len(pedigree.nodes)} nodes "
            f"({len(pedigree.sampled_nodes())} with methylation data) and {len(edges)} edges"
        )
        return pedigree

    def add_edge(self, parent: str, child: str, dt: int = 1) -> None:
        for name in (parent, child):
            if name not in self.nodes:
                raise PedigreeError(
                    f"The edge list contains the node {name!r} that does not exist in the node list"
                )
        self.edges.append((parent, child, dt))
        # First incoming edge wins.
        self._parents.setdefault(child, parent)

    def parent(self, name: str) -> Optional[str]:
        self._require(name)
        return self._parents.get(name)

    def ancestors(self, name: str) -> List[str]:
        """Lineage of a node, starting with the node itself."""
        self._require(name)
        lineage = [name]
        visited = {name}
        current = self._parents.get(name)
        while current is not None and current not in visited:
            lineage.append(current)
            visited.add(current)
            current = self._parents.get(current)
        return lineage

    def last_common_ancestor(self, a: str, b: str) -> PedigreeNode:
        """
        Most recent node on both lineages (one of the two if related directly).

        Raises:
            PedigreeError: If the lineages never meet
        """
        lineage_a = set(self.ancestors(a))
        for name in self.ancestors(b):
            if name in lineage_a:
                return self.nodes[name]
        raise PedigreeError(f"Nodes {a!r} and {b!r} have no common ancestor")

    def sampled_nodes(self) -> List[PedigreeNode]:
        """Nodes with methylation data, in node list order."""
        return [node for node in self.nodes.values() if node.has_sites]

    def divergence_table(
        self,
        progress: Optional[Callable[[], None]] = None,
    ) -> PairwiseDivergenceTable:
        """
        Pairwise divergence between all sampled nodes.

        Rows follow node list order: (0, 1), (0, 2), ..., (1, 2), ...

        Raises:
            PedigreeError: If fewer than two nodes are sampled, a pair has no
                common ancestor or no comparable sites
        """
        sampled = self.sampled_nodes()
        if len(sampled) < 2:
            raise PedigreeError(
                f"At least two nodes with methylation data are needed, found {len(sampled)}"
            )

        rows = []
        pairs = []
        for first, second in combinations(sampled, 2):
            t0 = self.last_common_ancestor(first.name, second.name).generation
            d = sample_divergence(first.sites, second.sites, self.posterior_max_filter)
            if np.isnan(d):
                raise PedigreeError(
                    f"No comparable sites between {first.name!r} and {second.name!r}"
                )
            rows.append((t0, first.generation, second.generation, d))
            pairs.append((first.name, second.name))
            if progress is not None:
                progress()

        logger.info(f"Computed divergence for {len(rows)} sample pairs")
        return PairwiseDivergenceTable.from_rows(rows, pairs=pairs)

    def p0uu(self) -> float:
        """
        Proportion of unmethylated calls at generation 0.

        Pooled over the filtered sites of all sampled generation-0 nodes.

        Raises:
            PedigreeError: If no generation-0 node has usable sites
        """
        founders = [n for n in self.sampled_nodes() if n.generation == 0]
        if not founders:
            raise PedigreeError("No node with methylation data at generation 0")

        n_sites = 0
        n_unmethylated = 0.0
        for node in founders:
            n = int(passes_filter(node.sites, self.posterior_max_filter).sum())
            if n:
                n_unmethylated += proportion_unmethylated(node.sites, self.posterior_max_filter) * n
                n_sites += n
        if n_sites == 0:
            raise PedigreeError("No generation-0 site passed the posterior filter")
        return n_unmethylated / n_sites

    def avg_umeth_lvl(self) -> float:
        """Mean unmethylated level, 1 - mean(rc.meth.lvl), over sampled nodes."""
        levels = [lvl for lvl in (n.avg_meth_lvl() for n in self.sampled_nodes()) if lvl is not None]
        if not levels:
            return float("nan")
        return float(np.mean([1.0 - lvl for lvl in levels]))

    def _require(self, name: str) -> None:
        if name not in self.nodes:
            raise PedigreeError(f"Unknown node {name!r}")

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return f"Pedigree(nodes={len(self.nodes)}, sampled={len(self.sampled_nodes())}, edges={len(self.edges)})"
