"""Command-line entry point for Seismicity Engine."""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from seismicity_engine.config import load_config
from seismicity_engine.data.loaders import load_records
from seismicity_engine.data.selection import get_population, select_records
from seismicity_engine.exceptions import SeismicityEngineError
from seismicity_engine.pipeline import run_pipeline

app = typer.Typer(
    name="seismicity-engine",
    help="Tune, train and interpret induced-seismicity magnitude models.",
    no_args_is_help=True,
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="YAML file with a 'pipeline' section"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run selection, tuning, training, evaluation and interpretation."""
    _configure_logging(verbose)

    try:
        result = run_pipeline(load_config(config_path))
    except (SeismicityEngineError, ValidationError) as e:
        typer.echo(f"{type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(result.report.summary_text())
    typer.echo("")
    for name, path in result.artifacts.items():
        typer.echo(f"{name}: {path}")


@app.command()
def validate(
    config_path: Path = typer.Argument(..., help="YAML file with a 'pipeline' section"),
) -> None:
    """Load the configuration and run record selection only."""
    _configure_logging(False)

    try:
        config = load_config(config_path)
        population = get_population(config.population)
        table = select_records(
            load_records(config.input_path, id_column=config.id_column),
            target=config.target or population.target,
            features=config.features,
            rules=population.rules,
            non_causal=config.non_causal_features,
        )
    except (SeismicityEngineError, ValidationError) as e:
        typer.echo(f"{type(e).__name__}: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo(f"{len(table)} rows x {len(table.columns)} columns selected")


if __name__ == "__main__":
    app()
