from __future__ import annotations

from typing import Any, Iterable

import typer

from models.schemas import RunReport, RunStatus

SUCCESS_MESSAGE = "Data processed and saved successfully."
DRY_RUN_MESSAGE = "Data processed; dry run, no output written."


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_summaries(report: RunReport) -> None:
    echo_heading("Clusters")
    if not report.summaries:
        typer.echo("No clusters produced.")
        return
    for summary in report.summaries:
        typer.echo(
            f"  - f_id={summary.f_id} f_timestamp={summary.f_timestamp} "
            f"f_u_id={summary.f_u_id} members={len(summary.members())}"
        )
        typer.echo(f"    {summary.cluster_data}")


def render_report(report: RunReport, show_clusters: bool = False) -> None:
    echo_heading("Run Report")
    echo_key_values(
        [
            ("status", report.status.value),
            ("input_path", report.input_path),
            ("output_path", report.output_path or "(dry run, nothing written)"),
            ("threshold", report.threshold),
            ("observation_count", report.observation_count),
            ("cluster_count", report.cluster_count),
            ("processing_ms", report.processing_ms),
        ]
    )

    if show_clusters and report.status is RunStatus.processed:
        typer.echo()
        render_summaries(report)

    typer.echo()
    if report.status is RunStatus.processed:
        message = SUCCESS_MESSAGE if report.output_path else DRY_RUN_MESSAGE
        typer.secho(message, fg=typer.colors.GREEN)
    else:
        typer.secho(f"Error processing data: {report.error}", fg=typer.colors.RED, err=True)
