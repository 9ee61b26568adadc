"""CLI entry point for strict-hooks."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from strict_hooks import __version__
from strict_hooks.analyzer.models import LintReport
from strict_hooks.config import ConfigError, LintConfig, find_config, load_config
from strict_hooks.scanner import scan


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, resolve_path=True))
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice(["stylish", "json", "md"], case_sensitive=False),
    default="stylish",
    help="Output format (default: stylish).",
)
@click.option(
    "-o", "--output",
    type=click.Path(resolve_path=True),
    default=None,
    help="Output file path. Defaults to stdout.",
)
@click.option(
    "-c", "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    default=None,
    help="YAML config file. Defaults to the nearest .strict-hooks.yml.",
)
@click.option("--enable-hook", multiple=True, help="Also analyze calls to this hook (repeatable).")
@click.option("--disable-hook", multiple=True, help="Never analyze calls to this hook (repeatable).")
@click.option(
    "--per-dependency/--aggregate", default=None,
    help="One warning per undocumented dependency, or one per hook call.",
)
@click.option(
    "--respect-upstream-disable/--no-respect-upstream-disable", default=None,
    help="Skip hook calls whose line is also covered by another eslint-disable.",
)
@click.option(
    "--source-type",
    type=click.Choice(["module", "script"]),
    default=None,
    help="Top-level bindings are module-scoped (default) or global.",
)
@click.option(
    "--max-warnings", type=int, default=-1, show_default=True,
    help="Exit with status 1 when more warnings than this are reported.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(version=__version__)
def main(
    paths: tuple[str, ...],
    fmt: str,
    output: str | None,
    config_path: str | None,
    enable_hook: tuple[str, ...],
    disable_hook: tuple[str, ...],
    per_dependency: bool | None,
    respect_upstream_disable: bool | None,
    source_type: str | None,
    max_warnings: int,
    verbose: bool,
) -> None:
    """Check that disabled exhaustive-deps comments document every omitted dependency."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    config = _load(config_path, Path(paths[0]))
    overrides: dict = {}
    if enable_hook:
        overrides["enabled_hooks"] = config.enabled_hooks | set(enable_hook)
    if disable_hook:
        overrides["disabled_hooks"] = config.disabled_hooks | set(disable_hook)
    if per_dependency is not None:
        overrides["require_comment_per_dependency"] = per_dependency
    if respect_upstream_disable is not None:
        overrides["respect_upstream_disable"] = respect_upstream_disable
    if source_type is not None:
        overrides["source_type"] = source_type
    if overrides:
        config = config.model_copy(update=overrides)

    report = scan([Path(p) for p in paths], config)

    if fmt == "json":
        text = json.dumps(report.model_dump(), indent=2)
    elif fmt == "md":
        from strict_hooks.render.markdown import render_markdown
        text = render_markdown(report)
    else:
        from strict_hooks.render.stylish import render_stylish
        text = render_stylish(report)
    _emit(text, output)

    sys.exit(_exit_code(report, max_warnings))


def _load(config_path: str | None, first_path: Path) -> LintConfig:
    path = Path(config_path) if config_path else find_config(first_path)
    if path is None:
        return LintConfig()
    try:
        return load_config(path)
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc


def _emit(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text)
        click.echo(f"Report written to {output}", err=True)
    elif text:
        click.echo(text)


def _exit_code(report: LintReport, max_warnings: int) -> int:
    if report.failed_files:
        return 1
    if max_warnings >= 0 and report.warning_count > max_warnings:
        return 1
    return 0


if __name__ == "__main__":
    main()
