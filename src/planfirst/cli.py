"""CLI commands for generating, exporting and verifying implementation plans."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .analysis import read_package_name, scan_project
from .config import (
    CONFIG_DIR_NAME,
    ConfigError,
    config_path_for,
    default_config,
    exclude_patterns,
    ignore_warnings,
    load_config,
    resolve_plans_dir,
    strict_mode,
    write_config,
)
from .models import LLMClient, LLMClientError, OfflineClient, build_client
from .planning.export import EXPORT_FORMATS, ExportError, export_plan
from .planning.generator import generate_plan
from .planning.phaser import mark_verified
from .prompts import PLANNER_SYSTEM_PROMPT
from .schema import Plan, PlanStatus
from .store import PlanNotFoundError, PlanStore, PlanStoreError
from .verification import VerifyOptions, exit_code_for, render_summary, verify_plan, write_markdown_report

APP_HELP = "PlanFirst: plan before you code, then verify what was built."
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help=APP_HELP)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Emit debug logging to stderr.",
    ),
) -> None:
    """Configure logging once for the whole command run."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _project_root(config: Dict[str, Any], base: Path) -> Path:
    """Resolve the project root from configuration."""
    project_cfg = config.get("project") or {}
    root_path = Path(str(project_cfg.get("root") or "."))
    if not root_path.is_absolute():
        root_path = (base / root_path).resolve()
    return root_path


def _load_project() -> tuple[Path, Dict[str, Any]]:
    """Return ``(project_root, config)`` for the current directory or exit."""
    base = Path.cwd()
    config_path = config_path_for(base)
    if not config_path.exists():
        typer.echo("PlanFirst is not initialized in this directory. Run: planfirst init")
        raise typer.Exit(code=1)
    try:
        config = load_config(config_path)
    except ConfigError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error
    return _project_root(config, base), config


def _open_store(config: Dict[str, Any], root: Path) -> PlanStore:
    return PlanStore(resolve_plans_dir(config, root))


def _load_plan(store: PlanStore, plan_id: str) -> Plan:
    try:
        return store.load(plan_id)
    except PlanNotFoundError as error:
        typer.echo(f"Plan not found: {plan_id}")
        typer.echo("Use: planfirst list - to see all plans")
        raise typer.Exit(code=1) from error
    except PlanStoreError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error


def _require_phase(plan: Plan, phase: Optional[int]) -> None:
    if phase is not None and plan.phase_by_order(phase) is None:
        typer.echo(f"Plan {plan.id} has no phase {phase} (phases: 1-{len(plan.phases)}).")
        raise typer.Exit(code=1)


def _build_client(config: Dict[str, Any], *, use_remote: bool) -> LLMClient:
    """Select the configured hosted client or the offline stub."""
    if not use_remote:
        typer.echo("Using offline stub client.")
        return OfflineClient()
    try:
        client = build_client(config.get("ai"), system_prompt=PLANNER_SYSTEM_PROMPT)
    except ValueError as error:
        typer.echo(f"Failed to initialise model client: {error}")
        typer.echo("Re-run with --no-use-remote to use the offline stub.")
        raise typer.Exit(code=1) from error
    typer.echo(f"Using {client.provider} client ({client.model}).")
    return client


@app.command()
def init(
    name: Optional[str] = typer.Option(
        None,
        "--name",
        "-n",
        help="Project name (defaults to the package name or directory name).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing configuration.",
    ),
) -> None:
    """Create .planfirst/config.yaml and the plans directory."""
    root = Path.cwd()
    config_path = config_path_for(root)
    if config_path.exists() and not force:
        typer.echo("PlanFirst is already initialized in this directory. Re-run with --force to overwrite.")
        raise typer.Exit(code=1)

    config_data = default_config()
    project_name = (name or "").strip() or read_package_name(root) or root.resolve().name
    config_data["project"]["name"] = project_name

    summary = scan_project(root, exclude_patterns(config_data), name=project_name)
    plans_dir = resolve_plans_dir(config_data, root)
    cache_dir = root / config_data["paths"]["cache"]
    plans_dir.mkdir(parents=True, exist_ok=True)
    cache_dir.mkdir(parents=True, exist_ok=True)

    action = "Reinitialized" if config_path.exists() else "Initialized"
    write_config(config_path, config_data)

    typer.echo(f"{action} PlanFirst configuration at {config_path}.")
    typer.echo(f"Project: {project_name}")
    typer.echo(f"Language: {summary.language}")
    if summary.package_manager:
        typer.echo(f"Package manager: {summary.package_manager}")
    typer.echo(f"Files analyzed: {summary.total_files}")
    typer.echo("Directories:")
    typer.echo(f"- {CONFIG_DIR_NAME}/ (configuration and cache)")
    typer.echo(f"- {config_data['paths']['plans']}/ (generated plans)")
    typer.echo('Next: planfirst plan "Add user authentication"')


@app.command()
def plan(
    description: str = typer.Argument(..., help="What should be built."),
    use_remote: bool = typer.Option(
        True,
        "--use-remote/--no-use-remote",
        help="Call the configured model API instead of the offline stub (requires API key).",
    ),
) -> None:
    """Generate a phased implementation plan and save it under the plans directory."""
    root, config = _load_project()
    client = _build_client(config, use_remote=use_remote)

    project_name = str((config.get("project") or {}).get("name") or "") or None
    summary = scan_project(root, exclude_patterns(config), name=project_name)
    typer.echo(f"Analyzed {summary.total_files} file(s) ({summary.total_lines} lines) in {summary.name}.")

    try:
        generated, markdown = generate_plan(client, description, summary)
    except LLMClientError as error:
        typer.echo(f"Plan generation failed: {error}")
        raise typer.Exit(code=1) from error

    store = _open_store(config, root)
    json_path, markdown_path = store.save(generated, markdown)

    typer.echo(f"Created plan {generated.id}: {generated.title}")
    typer.echo(
        f"Phases: {len(generated.phases)} | Complexity: {generated.metadata.estimated_complexity.value} "
        f"| Files affected: {len(generated.metadata.files_affected)}"
    )
    for phase in generated.phases:
        typer.echo(f"  {phase.order}. {phase.name} ({len(phase.tasks)} tasks)")
    typer.echo(f"JSON: {json_path}")
    typer.echo(f"Markdown: {markdown_path}")
    typer.echo(f"Next: planfirst export {generated.id}, then planfirst verify {generated.id}")


@app.command("list")
def list_plans(
    status: Optional[str] = typer.Option(
        None,
        "--status",
        "-s",
        help=f"Only list plans with this status ({', '.join(item.value for item in PlanStatus)}).",
    ),
) -> None:
    """List saved plans, oldest first."""
    wanted: Optional[PlanStatus] = None
    if status is not None:
        try:
            wanted = PlanStatus(status.strip().lower())
        except ValueError as error:
            choices = ", ".join(item.value for item in PlanStatus)
            typer.echo(f"Unknown plan status '{status}'. Choose from: {choices}")
            raise typer.Exit(code=1) from error

    root, config = _load_project()
    plans = _open_store(config, root).list_plans()
    if not plans:
        typer.echo('No plans yet. Run: planfirst plan "<description>"')
        return
    if wanted is not None:
        plans = [item for item in plans if item.status == wanted]
        if not plans:
            typer.echo(f"No plans match status: {wanted.value}")
            return
    for item in plans:
        typer.echo(
            f"- {item.id} [{item.status.value}] {item.title} "
            f"({len(item.phases)} phase(s), {item.timestamp.isoformat()})"
        )
    typer.echo(f"Total: {len(plans)} plan(s)")


@app.command()
def show(
    plan_id: str = typer.Argument(..., help="Identifier of the plan to display."),
    phase: Optional[int] = typer.Option(
        None,
        "--phase",
        "-p",
        help="Show only this phase number, with task reasoning.",
    ),
) -> None:
    """Print a plan's phases and tasks."""
    root, config = _load_project()
    item = _load_plan(_open_store(config, root), plan_id)
    _require_phase(item, phase)

    typer.echo(f"Plan {item.id} [{item.status.value}]")
    typer.echo(f"Title: {item.title}")
    typer.echo(f"Description: {item.description}")
    typer.echo(
        f"Complexity: {item.metadata.estimated_complexity.value} | "
        f"Estimated time: {item.metadata.estimated_time or 'unknown'}"
    )
    phases = item.phases if phase is None else [item.phase_by_order(phase)]
    for entry in phases:
        depends = f" (after {', '.join(entry.dependencies)})" if entry.dependencies else ""
        typer.echo(f"Phase {entry.order}: {entry.name} [{entry.status.value}]{depends}")
        if phase is not None:
            typer.echo(f"  {entry.description}")
        for task in entry.tasks:
            typer.echo(f"  - {task.id}: {task.type.value} {task.file}")
            if phase is not None:
                typer.echo(f"      Why: {task.reasoning}")


@app.command()
def export(
    plan_id: str = typer.Argument(..., help="Identifier of the plan to export."),
    fmt: str = typer.Option(
        "markdown",
        "--format",
        "-f",
        help=f"Output format: {', '.join(EXPORT_FORMATS)}.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write to this file instead of stdout.",
    ),
    phase: Optional[int] = typer.Option(
        None,
        "--phase",
        "-p",
        help="Export only this phase number.",
    ),
) -> None:
    """Render a plan for a coding agent."""
    root, config = _load_project()
    item = _load_plan(_open_store(config, root), plan_id)
    _require_phase(item, phase)

    try:
        rendered = export_plan(item, fmt, phase=phase)
    except ExportError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    if output is None:
        typer.echo(rendered, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered, encoding="utf-8")
    typer.echo(f"Exported plan {item.id} to {output}")


@app.command()
def verify(
    plan_id: str = typer.Argument(..., help="Identifier of the plan to verify."),
    phase: Optional[int] = typer.Option(
        None,
        "--phase",
        "-p",
        help="Verify only this phase number.",
    ),
    task: Optional[str] = typer.Option(
        None,
        "--task",
        "-t",
        help="Verify only this task id.",
    ),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        "-r",
        help="Write a markdown verification report to this path.",
    ),
    strict: Optional[bool] = typer.Option(
        None,
        "--strict/--no-strict",
        help="Flag changes the plan did not ask for (defaults to verification.strict_mode).",
    ),
) -> None:
    """Check the working tree against a plan; exits 1 when verification fails."""
    root, config = _load_project()
    store = _open_store(config, root)
    item = _load_plan(store, plan_id)
    _require_phase(item, phase)

    typer.echo(f"Plan: {item.title}")
    if phase is not None:
        typer.echo(f"Verifying phase: {phase}")

    options = VerifyOptions(
        phase=phase,
        task=task,
        strict_mode=strict_mode(config) if strict is None else strict,
    )
    result = verify_plan(item, root, options)

    for line in render_summary(result, include_warnings=not ignore_warnings(config)):
        typer.echo(line)

    if report is not None:
        written = write_markdown_report(result, report)
        typer.echo(f"Report saved to: {written}")

    if task is None and mark_verified(item, result):
        store.update(item)
        LOGGER.debug("Marked plan %s as verified", item.id)

    code = exit_code_for(result)
    if code:
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
