"""Click CLI with analyze, cache, and serve subcommands."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from safehandle_analyzer import __version__
from safehandle_analyzer.analysis.classify import parse_type_list
from safehandle_analyzer.cache import AnalysisCacheStore
from safehandle_analyzer.models import CachePolicy, ScanConfig
from safehandle_analyzer.provider import ProviderError, open_provider
from safehandle_analyzer.scan import run_scan

logger = logging.getLogger("safehandle_analyzer")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
_POLICY_CHOICES = [p.value for p in CachePolicy]

_cache_file_option = click.option(
    "--cache-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default="analysis_cache.json",
    envvar="SAFEHANDLE_CACHE_FILE",
    show_default=True,
    help="Analysis cache used to resume interrupted scans",
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__)
def cli():
    """safehandle-analyzer: find out why leaked SafeHandles are still alive."""


@cli.command()
@click.option("--pid", "-p", "process_id", type=int, help="Process ID to attach to")
@click.option("--dump", "-d", "dump_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a heap snapshot exported from a dump")
@click.option("--gcroot-types", "-t", help="Comma separated SafeHandle type suffixes to trace")
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path), default=".",
              help="Output directory")
@_cache_file_option
@click.option("--cache-policy", type=click.Choice(_POLICY_CHOICES), default=CachePolicy.REFRESH.value,
              show_default=True,
              help="refresh: re-analyze cached objects when drawing graphs; skip: never re-analyze")
@click.option("--reports/--no-reports", default=True, help="Write a text report per object")
@click.option("--object-graphs", is_flag=True, help="Write an SVG graph per object")
@click.option("--overlay/--no-overlay", default=False, help="Write the overlay graph of all root paths")
@click.option("--no-script", is_flag=True, help="Omit the copy-on-double-click script from SVGs")
@click.option("--log-level", type=click.Choice(_LOG_LEVELS, case_sensitive=False), default="INFO")
def analyze(
    process_id: int | None,
    dump_path: Path | None,
    gcroot_types: str | None,
    output_dir: Path,
    cache_file: Path,
    cache_policy: str,
    reports: bool,
    object_graphs: bool,
    overlay: bool,
    no_script: bool,
    log_level: str,
):
    """Scan the finalizer queue and trace GC roots of selected SafeHandles."""
    config = ScanConfig(
        process_id=process_id,
        dump_path=dump_path,
        gcroot_types=parse_type_list(gcroot_types),
        output_dir=output_dir,
        cache_file=cache_file,
        cache_policy=CachePolicy(cache_policy),
        write_reports=reports,
        object_graphs=object_graphs,
        overlay=overlay,
        interactive_svg=not no_script,
    )
    try:
        config.validate()
    except ValueError:
        raise click.UsageError("Exactly one of --pid or --dump must be specified.")

    _configure_logging(log_level)

    try:
        provider = open_provider(config)
    except ProviderError as e:
        logger.error("%s - stopping", e)
        raise click.ClickException(str(e))

    with provider:
        summary = run_scan(config, provider)

    click.echo(f"\n{summary.total_handles} SafeHandle(s) in the finalizer queue")
    for type_name, count in sorted(summary.handle_counts.items(), key=lambda kv: -kv[1]):
        click.echo(f"  {count:>6}  {type_name}")
    click.echo(
        f"\nAnalyzed {summary.analyzed}, "
        f"skipped {summary.skipped_cached} cached, "
        f"{click.style(str(summary.failed), fg='red' if summary.failed else 'green')} failed"
    )
    if summary.overlay_path:
        click.echo(f"Overlay graph: {click.style(str(summary.overlay_path), fg='cyan')}")
    for f in summary.files_created:
        click.echo(f"  {f}")


@cli.command()
@_cache_file_option
def cache(cache_file: Path):
    """List objects recorded in the analysis cache."""
    store = AnalysisCacheStore(cache_file)
    store.load()
    if not len(store):
        click.echo("Cache is empty.")
        return

    click.echo(f"\n{len(store)} analyzed object(s) in {cache_file}:\n")
    for entry in sorted(store.entries(), key=lambda e: (e.type_name, e.object_address)):
        paths_color = "yellow" if entry.root_path_count else "red"
        click.echo(
            f"  {click.style(f'0x{entry.object_address:016x}', fg='cyan')}  "
            f"{click.style(str(entry.root_path_count), fg=paths_color):>12} path(s)  "
            f"{entry.type_name}  "
            f"{click.style(entry.analysis_date.isoformat(timespec='seconds'), dim=True)}"
        )


@cli.command()
@_cache_file_option
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path), default=".",
              help="Directory holding reports and the overlay graph")
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
@click.option("--open/--no-open", default=True, help="Open browser automatically")
def serve(cache_file: Path, output_dir: Path, port: int, host: str, open: bool):
    """Browse cached analyses and reports over HTTP."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the report browser. "
            "Install with: pip install 'safehandle-analyzer[web]'"
        )

    from safehandle_analyzer.web import create_app

    click.echo(f"Serving reports at http://{host}:{port}/docs")

    if open:
        import webbrowser
        import threading
        threading.Timer(1.0, lambda: webbrowser.open(f"http://{host}:{port}/docs")).start()

    uvicorn.run(create_app(cache_file, output_dir), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
