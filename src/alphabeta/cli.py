"""Command-line interface."""

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from alphabeta.config import AlphaBetaConfig
from alphabeta.core.analysis import REPORT_KEYS, Analysis
from alphabeta.core.model import Model
from alphabeta.errors import AlphaBetaError

app = typer.Typer(help="AlphaBeta: epimutation rate estimation from pedigree methylation data")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _progress() -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


def _factory(progress: Progress):
    def make_hook(label: str, total: Optional[int]):
        task_id = progress.add_task(label, total=total)

        def hook() -> None:
            progress.advance(task_id)

        return hook

    return make_hook


def _model_table(model: Model) -> Table:
    table = Table(title="Model")
    table.add_column("Parameter", style="cyan")
    table.add_column("Estimate", style="green", justify="right")
    for name, value in model.to_dict().items():
        table.add_row(name, f"{value:.6e}")
    return table


def _analysis_table(analysis: Analysis) -> Table:
    table = Table(title="Bootstrap analysis")
    table.add_column("Quantity", style="cyan")
    for column in ("Mean", "SD", "2.5%", "97.5%"):
        table.add_column(column, justify="right")
    for key, label in REPORT_KEYS:
        ci = getattr(analysis, f"ci_{key}")
        table.add_row(
            label,
            f"{getattr(analysis, key):.6e}",
            f"{getattr(analysis, 'sd_' + key):.6e}",
            f"{ci.lower:.6e}",
            f"{ci.upper:.6e}",
        )
    return table


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[red]Error: {escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


@app.command()
def run(
    nodes: Path = typer.Option(Path("nodelist.txt"), "--nodes", "-n", help="Node list file"),
    edges: Path = typer.Option(Path("edgelist.txt"), "--edges", "-e", help="Edge list file"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Output directory"),
    iterations: int = typer.Option(1000, "--iterations", "-i", help="Random starts and bootstrap replicates"),
    posterior_max_filter: float = typer.Option(0.99, "--posterior-max-filter", "-p", help="Minimum call posterior"),
    eqp_weight: float = typer.Option(1.0, "--eqp-weight", help="Weight of the equilibrium penalty"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker pool size (1 runs inline)"),
    processes: bool = typer.Option(False, "--processes", help="Use a process pool instead of threads"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible runs"),
    no_plot: bool = typer.Option(False, "--no-plot", help="Skip the bootstrap boxplot"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Estimate epimutation rates from a pedigree."""
    from alphabeta import pipeline

    _configure_logging(verbose)
    config = AlphaBetaConfig(
        nodes=nodes,
        edges=edges,
        output=output,
        iterations=iterations,
        posterior_max_filter=posterior_max_filter,
        eqp_weight=eqp_weight,
        max_workers=workers,
        executor="process" if processes else "thread",
        seed=seed,
        plot=not no_plot,
    )

    try:
        with _progress() as progress:
            result = pipeline.run(config, progress_factory=_factory(progress))
    except AlphaBetaError as exc:
        _fail(exc)

    console.print(_model_table(result.model))
    console.print(_analysis_table(result.analysis))
    console.print(f"\n[cyan]Predicted steady state:[/cyan] {result.pred_steady_state:.6f}")
    console.print(f"[cyan]Observed steady state:[/cyan] {result.obs_steady_state:.6f}")
    console.print(f"\nResults written to [bold]{config.output}[/bold]")


@app.command()
def estimate(
    pedigree_file: Path = typer.Argument(..., help="Divergence table (time0 time1 time2 D.value)"),
    p0uu: float = typer.Option(..., "--p0uu", help="Proportion of unmethylated sites at generation 0"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory for model.txt and analysis.txt"),
    iterations: int = typer.Option(1000, "--iterations", "-i", help="Random starts and bootstrap replicates"),
    eqp_weight: float = typer.Option(1.0, "--eqp-weight", help="Weight of the equilibrium penalty"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker pool size (1 runs inline)"),
    processes: bool = typer.Option(False, "--processes", help="Use a process pool instead of threads"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible runs"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Fit and bootstrap the model on an existing divergence table."""
    from alphabeta.core.bootstrap import BootstrapEngine
    from alphabeta.core.data import PairwiseDivergenceTable
    from alphabeta.core.fitting import ModelFitter

    _configure_logging(verbose)
    config = AlphaBetaConfig(
        iterations=iterations,
        eqp_weight=eqp_weight,
        max_workers=workers,
        executor="process" if processes else "thread",
        seed=seed,
    )

    try:
        table = PairwiseDivergenceTable.from_file(pedigree_file)
        with _progress() as progress:
            make_hook = _factory(progress)
            fit_result = ModelFitter(config).fit(
                table, p0uu, p0uu, eqp_weight, progress=make_hook("Fitting model", iterations)
            )
            boot_result = BootstrapEngine(config).run(
                table,
                fit_result.model,
                fit_result.predicted_divergence,
                fit_result.residuals,
                p0uu,
                p0uu,
                eqp_weight,
                progress=make_hook("Bootstrapping", iterations),
            )
    except AlphaBetaError as exc:
        _fail(exc)

    console.print(_model_table(fit_result.model))
    console.print(_analysis_table(boot_result.analysis))

    if output is not None:
        output.mkdir(parents=True, exist_ok=True)
        fit_result.model.to_file(output / "model.txt")
        boot_result.analysis.to_file(output / "analysis.txt")
        console.print(f"\nResults written to [bold]{output}[/bold]")


@app.command()
def divergence(
    nodes: Path = typer.Option(Path("nodelist.txt"), "--nodes", "-n", help="Node list file"),
    edges: Path = typer.Option(Path("edgelist.txt"), "--edges", "-e", help="Edge list file"),
    output: Path = typer.Option(Path("pedigree.txt"), "--output", "-o", help="Divergence table to write"),
    posterior_max_filter: float = typer.Option(0.99, "--posterior-max-filter", "-p", help="Minimum call posterior"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Write the pairwise divergence table of a pedigree."""
    from alphabeta.pedigree import Pedigree

    _configure_logging(verbose)
    try:
        pedigree = Pedigree.from_files(nodes, edges, posterior_max_filter=posterior_max_filter)
        table = pedigree.divergence_table()
        p0uu = pedigree.p0uu()
    except AlphaBetaError as exc:
        _fail(exc)

    table.to_file(output)
    console.print(f"Wrote {table.n_rows} sample pairs to [bold]{output}[/bold]")
    console.print(f"[cyan]p0uu:[/cyan] {p0uu:.6f}")


@app.command()
def version():
    """Show alphabeta version."""
    from alphabeta import __version__
    console.print(f"alphabeta version {__version__}")


if __name__ == "__main__":
    app()
