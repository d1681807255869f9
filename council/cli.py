"""Click CLI: loads config and opinions, builds backends, runs the council, prints the verdict."""

import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, ConfigError, ConsensusSettings, load_config
from council.backends.anthropic import AnthropicBackend
from council.backends.base import DebateBackend, RoutingBackend
from council.backends.openai_backend import OpenAIBackend
from council.healthcheck import run_health_checks
from council.models import Opinion
from council.output import print_report, print_round_summary
from council.pipeline import run_council

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

BACKEND_CLASSES: dict[str, type[DebateBackend]] = {
    "anthropic": AnthropicBackend,
    "openai": OpenAIBackend,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def load_opinions(path: Path) -> list[Opinion]:
    """Read a YAML or JSON list of opinion mappings.

    Raises:
        ValueError: If the document is not a list or an entry is malformed.
    """
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict) and "opinions" in raw:
        raw = raw["opinions"]
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of opinions")

    opinions: list[Opinion] = []
    for index, entry in enumerate(raw):
        try:
            opinions.append(
                Opinion(
                    reviewer_id=str(entry["reviewer"]),
                    severity=entry["severity"],
                    category=str(entry.get("category", "general")),
                    file=str(entry["file"]),
                    line=int(entry["line"]),
                    line_end=int(entry["line_end"]) if entry.get("line_end") is not None else None,
                    title=str(entry["title"]),
                    description=entry.get("description"),
                    suggestion=entry.get("suggestion"),
                    confidence=float(entry.get("confidence", 0.5)),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"{path}: opinion #{index + 1} is invalid: {exc}") from exc
    return opinions


def _build_all_backends(config: AppConfig) -> dict[str, DebateBackend]:
    """Build backends for all reviewers with API keys. Returns dict keyed by reviewer."""
    backends: dict[str, DebateBackend] = {}
    for name in sorted(config.available_reviewers):
        reviewer_cfg = config.reviewers[name]
        backend_cls = BACKEND_CLASSES.get(reviewer_cfg.sdk)
        if backend_cls is None:
            logger.warning("Reviewer '%s' uses unknown sdk '%s', skipping", name, reviewer_cfg.sdk)
            continue
        try:
            backends[name] = backend_cls(reviewer_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate backend '%s': %s", name, exc)
    return backends


def _apply_overrides(
    config: AppConfig,
    threshold: float | None,
    max_rounds: int | None,
    timeout: float | None,
) -> AppConfig:
    """CLI flags win over settings.yaml. Raises ConfigError for bad values."""
    if threshold is not None:
        config = replace(config, consensus=ConsensusSettings(threshold=threshold))
    if max_rounds is not None:
        config = replace(config, debate=replace(config.debate, max_rounds=max_rounds))
    if timeout is not None:
        config = replace(config, runtime=replace(config.runtime, timeout_sec=timeout))
    return config


def _check_and_filter_backends(backends: dict[str, DebateBackend]) -> dict[str, DebateBackend]:
    """Run health checks, print results, and drop backends that fail."""
    console.print("\n[bold]Checking reviewer backends...[/bold]")
    results: dict[str, tuple[bool, str]] = asyncio.run(run_health_checks(backends))

    working: dict[str, DebateBackend] = {}
    for name in sorted(results):
        ok, err = results[name]
        if ok:
            console.print(f"  [green]OK  [/green] {name}")
            working[name] = backends[name]
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {name}: {short_err}")

    console.print()
    return working


@click.command()
@click.argument("opinions_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--settings", "settings_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Settings file (default: config/settings.yaml)")
@click.option("--threshold", type=float, default=None, help="Majority threshold for accepting without debate")
@click.option("--max-rounds", type=int, default=None, help="Maximum debate rounds per location")
@click.option("--timeout", type=float, default=None, help="Per-call backend timeout in seconds")
@click.option("--no-debate", is_flag=True, default=False,
              help="Resolve contested locations by plurality without calling any backend")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the backend connectivity check at startup")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
def main(
    opinions_file: Path,
    settings_path: Path | None,
    threshold: float | None,
    max_rounds: int | None,
    timeout: float | None,
    no_debate: bool,
    skip_health_check: bool,
    verbose: bool,
) -> None:
    """Code Council -- consensus and debate over reviewer opinions.

    \b
    Examples:
      council opinions.yaml
      council opinions.json --threshold 0.8 --max-rounds 2
      council opinions.yaml --no-debate
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config(settings_path) if settings_path else load_config()
        config = _apply_overrides(config, threshold, max_rounds, timeout)
    except (FileNotFoundError, ConfigError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    try:
        opinions = load_opinions(opinions_file)
    except (ValueError, yaml.YAMLError) as exc:
        console.print(f"[bold red]Input error:[/bold red] {exc}")
        sys.exit(1)

    backend: DebateBackend | None = None
    if not no_debate:
        backends = _build_all_backends(config)
        if backends and not skip_health_check:
            backends = _check_and_filter_backends(backends)
        if not backends:
            console.print("[yellow]No reviewer backends available; contested locations resolve by plurality.[/yellow]")
        else:
            missing = sorted({o.reviewer_id for o in opinions} - set(backends))
            if missing:
                logger.warning("No backend for reviewer(s) %s; they keep their original stance", ", ".join(missing))
            backend = RoutingBackend(backends)

    console.print(f"\n[bold cyan]Code Council[/bold cyan]: {len(opinions)} opinion(s) from {opinions_file}")

    report = asyncio.run(
        run_council(
            opinions,
            backend,
            config=config,
            on_round_complete=print_round_summary,
        )
    )
    print_report(report)


if __name__ == "__main__":
    main()
