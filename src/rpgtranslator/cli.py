"""CLI interface for rpgtranslator using Typer."""

from __future__ import annotations

import asyncio
import logging
import math
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from rpgtranslator import __version__
from rpgtranslator.backends.catalog import CATALOG, LANGUAGE_NAMES, BackendType, get_spec
from rpgtranslator.errors import TranslationError

app = typer.Typer(
    name="rpgtranslator",
    help="Translate RPG Maker MV data files with pluggable AI backends.",
    add_completion=False,
)
console = Console()

_verbose = False
_quiet = False

# Environment variable consulted when --api-key is not given
API_KEY_ENV: dict[BackendType, str] = {
    BackendType.chatgpt: "OPENAI_API_KEY",
    BackendType.deepseek: "DEEPSEEK_API_KEY",
    BackendType.deepl: "DEEPL_API_KEY",
}


def _print(msg: str, *, verbose_only: bool = False) -> None:
    """Print respecting --verbose/--quiet flags. Errors bypass --quiet."""
    if _quiet:
        return
    if verbose_only and not _verbose:
        return
    console.print(msg)


def _fail(msg: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(msg)}")
    return typer.Exit(1)


def _resolve_api_key(backend: BackendType, api_key: str | None) -> str | None:
    if api_key:
        return api_key
    env = API_KEY_ENV.get(backend)
    if env is None:
        return None
    return os.environ.get(env) or None


def _load(file: Path):
    from rpgtranslator.core.document import load_document

    if not file.exists():
        raise _fail(f"File not found: {file}")
    try:
        return load_document(file)
    except ValueError as e:
        raise _fail(str(e)) from e


def version_callback(value: bool) -> None:
    if value:
        console.print(f"rpgtranslator {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show extra info and debug logging.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only show errors.",
    ),
) -> None:
    """rpgtranslator: Translate RPG Maker MV games with AI backends."""
    global _verbose, _quiet
    _verbose = verbose
    _quiet = quiet
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def scan(
    file: Path = typer.Argument(..., help="Path to the data file (e.g. Actors.json)."),
) -> None:
    """Scan a data file and list translatable strings."""
    from rpgtranslator.translation.extractor import extract_units

    document = _load(file)
    units = extract_units(document)
    console.print(f"Found [green]{len(units)}[/green] translatable strings\n")

    table = Table(title=f"Translatable strings in {file.name}")
    table.add_column("ID", style="dim")
    table.add_column("Field")
    table.add_column("Class")
    table.add_column("Text")

    for u in units:
        table.add_row(u.resource_id, u.field, u.content_class.value, escape(u.source[:60]))

    console.print(table)


@app.command()
def translate(
    file: Path = typer.Argument(
        ..., help="Path to the data file to translate.",
    ),
    backend_name: BackendType = typer.Option(
        BackendType.ollama, "--backend", "-b",
        help="Backend: ollama, chatgpt, deepseek, deepl, dummy, identity.",
    ),
    model: str | None = typer.Option(
        None, "--model", "-m", help="Model id. Defaults to the backend's default.",
    ),
    api_key: str | None = typer.Option(
        None, "--api-key", "-k",
        help="API key. Falls back to OPENAI_API_KEY, DEEPSEEK_API_KEY or DEEPL_API_KEY.",
    ),
    base_url: str | None = typer.Option(
        None, "--base-url", help="Override the service endpoint.",
    ),
    source: str = typer.Option(
        "ja", "--source", "-s", help="Source language code.",
    ),
    target: str = typer.Option(
        "en", "--target", "-t", help="Target language code.",
    ),
    batch_size: int = typer.Option(
        10, "--batch-size", min=1, help="Units per administrative batch.",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o",
        help="Output file path. Defaults to <name>_<lang>.json.",
    ),
    report: Path | None = typer.Option(
        None, "--report", "-r",
        help="Save report to file (json/md/csv).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="Translate but don't write the file.",
    ),
) -> None:
    """Translate a data file."""
    from rpgtranslator.backends.factory import BackendRegistry
    from rpgtranslator.config import make_config
    from rpgtranslator.reporting.formatters import save_report
    from rpgtranslator.reporting.report import TranslationReport
    from rpgtranslator.translation.extractor import extract_units
    from rpgtranslator.translation.orchestrator import TranslationRun
    from rpgtranslator.translation.patcher import apply_translations

    document = _load(file)

    rpt = TranslationReport(
        source_file=str(file),
        source_lang=source,
        target_lang=target,
        backend=backend_name.value,
        model=model or get_spec(backend_name).default_model,
        dry_run=dry_run,
    )

    units = extract_units(document)
    rpt.units_found = len(units)
    _print(f"Found [green]{len(units)}[/green] translatable strings")

    if not units:
        console.print("[yellow]No translatable strings found.[/yellow]")
        raise typer.Exit()

    registry = BackendRegistry()
    config = make_config(
        backend_name,
        model=model,
        api_key=_resolve_api_key(backend_name, api_key),
        base_url=base_url,
    )

    async def _run(on_progress):
        backend = await registry.create_or_get(backend_name, config)
        _print(f"Backend: [cyan]{backend.name}[/cyan] ({backend.model})", verbose_only=True)
        run = TranslationRun(
            backend, source, target, batch_size=batch_size, on_progress=on_progress,
        )
        return await run.execute(units)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
        disable=_quiet,
    ) as progress:
        task = progress.add_task("Translating", total=len(units))

        def on_progress(phase: str, current: int, total: int, message: str) -> None:
            progress.update(task, completed=current, total=total)

        try:
            result = asyncio.run(_run(on_progress))
        except (TranslationError, ImportError) as e:
            rpt.errors.append(str(e))
            rpt.finish()
            if report:
                save_report(rpt, report)
            raise _fail(str(e)) from e

    rpt.record_run(result)
    _print(
        f"Translated [green]{rpt.units_translated}[/green] strings"
        f" in {result.batch.stats.total_processing_time:.1f}s",
    )
    if rpt.units_failed:
        console.print(f"[yellow]{rpt.units_failed} strings failed:[/yellow]")
        for err in result.errors:
            console.print(f"  {err.unit.resource_id}.{err.unit.field}: {escape(err.message)}")

    if not dry_run:
        patched_doc, patched = apply_translations(document, result.units)
        rpt.fields_patched = patched
        _print(f"Patched [green]{patched}[/green] fields")

        if output is None:
            output = file.with_stem(f"{file.stem}_{target}")
        rpt.output_file = str(output)

        from rpgtranslator.core.document import save_document

        save_document(patched_doc, output)
        _print(f"Saved: [cyan]{output}[/cyan]")
    else:
        console.print("[yellow]Dry run — no file written.[/yellow]")
        table = Table(title="Translation Preview (first 20)")
        table.add_column("ID", style="dim")
        table.add_column("Field")
        table.add_column("Original")
        table.add_column("Translated", style="green")

        for u in result.units[:20]:
            table.add_row(u.resource_id, u.field, escape(u.source[:50]), escape(u.target[:50]))
        console.print(table)

    rpt.finish()

    if report:
        save_report(rpt, report)
        _print(f"Report saved: [cyan]{report}[/cyan]")


@app.command()
def estimate(
    file: Path = typer.Argument(..., help="Path to the data file."),
    backend_name: BackendType = typer.Option(
        BackendType.chatgpt, "--backend", "-b", help="Backend to price against.",
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model id."),
) -> None:
    """Estimate tokens and cost of translating a data file."""
    from rpgtranslator.backends.base import CHARS_PER_TOKEN
    from rpgtranslator.translation.extractor import extract_units

    spec = get_spec(backend_name)
    model = model or spec.default_model
    if not spec.is_model_supported(model):
        raise _fail(spec.model_error(model))

    units = extract_units(_load(file))
    tokens = sum(math.ceil(len(u.source) / CHARS_PER_TOKEN) for u in units)
    cost = tokens * spec.cost_per_token(model)

    console.print(f"Strings: [green]{len(units)}[/green]")
    console.print(f"Estimated tokens: [green]{tokens}[/green]")
    console.print(f"Estimated cost ({spec.metadata.name} {model}): [green]${cost:.4f}[/green]")


@app.command()
def backends() -> None:
    """List available backends, their models and languages."""
    table = Table(title="Backends")
    table.add_column("Backend", style="cyan")
    table.add_column("Models")
    table.add_column("Languages")
    table.add_column("API key")
    table.add_column("Adult")

    for backend_type, spec in CATALOG.items():
        langs = sorted(spec.metadata.supported_languages)
        table.add_row(
            backend_type.value,
            ", ".join(spec.supported_models),
            ", ".join(langs) if len(langs) < len(LANGUAGE_NAMES) else "all",
            API_KEY_ENV.get(backend_type, "yes") if spec.requires_api_key else "no",
            "yes" if spec.metadata.supports_adult_content else "no",
        )

    console.print(table)
