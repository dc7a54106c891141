from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cli.config import load_config
from cli.render import render_report
from logging_config import configure_logging
from models.schemas import RunStatus
from services.pipeline import build_default_pipeline

app = typer.Typer(
    help="Cluster spatially-proximate sensor observations from a CSV file.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL env or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(log_level.upper() if log_level else None)


@app.command("run")
def run_command(
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        "-i",
        dir_okay=False,
        help="Observation CSV (defaults to CLUSTER_INPUT_PATH env or data.csv).",
    ),
    output_path: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Summary CSV to write (defaults to CLUSTER_OUTPUT_PATH env or clustered_data.csv).",
    ),
    threshold: Optional[float] = typer.Option(
        None,
        "--threshold",
        "-t",
        min=0.0,
        help="Maximum distance linking two observations (defaults to CLUSTER_THRESHOLD env or 2).",
    ),
    id_strategy: Optional[str] = typer.Option(
        None,
        "--id-strategy",
        help="Cluster id generation: 'random' or 'sequential'.",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Seed for random cluster ids.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the clusters instead of writing the output file.",
    ),
) -> None:
    """Read observations, cluster them and write one summary row per cluster."""
    try:
        config = load_config(
            input_path=input_path,
            output_path=output_path,
            threshold=threshold,
            id_strategy=id_strategy,
            seed=seed,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--id-strategy") from exc

    pipeline = build_default_pipeline(
        input_path=str(config.input_path),
        output_path=str(config.output_path),
        threshold=config.threshold,
        id_strategy=config.id_strategy,
        seed=config.seed,
    )
    report = pipeline.run(dry_run=dry_run)
    render_report(report, show_clusters=dry_run)
    if report.status is RunStatus.failed:
        raise typer.Exit(code=1)
