import logging
from pathlib import Path

import click
from pydantic import BaseModel

from docwf.application.catalog import WorkflowCatalog
from docwf.application.config_loader import load_config
from docwf.application.dispatch import determine_execution_mode, family_for
from docwf.application.engine import WorkflowEngine
from docwf.application.message_detection import detect_workflow
from docwf.domain.events.emitter import WorkflowEventEmitter
from docwf.domain.events.stderr_observer import StderrEventObserver
from docwf.domain.models.results import EngineResult, EngineStatus
from docwf.domain.persistence.document_store import FileDocumentStore
from docwf.domain.providers import FileResponseProvider, ProviderFactory
from docwf.domain.providers.commit_feed import GitLogCommitFeed
from docwf.interface.cli.confirmation import AutoConfirmation, InteractiveConfirmation
from docwf.interface.cli.output_models import (
    DetectOutput,
    ProvidersOutput,
    RunOutput,
    ShowOutput,
    WorkflowDetail,
    WorkflowsOutput,
    WorkflowSummary,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_AWAITING_RESPONSE = 2
EXIT_CANCELLED = 3

_STATUS_EXIT_CODES = {
    EngineStatus.AWAITING_RESPONSE: EXIT_AWAITING_RESPONSE,
    EngineStatus.CANCELLED: EXIT_CANCELLED,
    EngineStatus.FAILED: EXIT_ERROR,
}


def _json_emit(model: BaseModel) -> None:
    # Single-line JSON, omit None fields.
    click.echo(model.model_dump_json(exclude_none=True), nl=True)


def _get_json_mode(ctx: click.Context) -> bool:
    obj = ctx.obj or {}
    return bool(obj.get("json", False))


def _parse_pairs(values: tuple[str, ...], option: str) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options."""
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition("=")
        if not sep or not key.strip() or not rest.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got '{value}'", param_hint=option)
        pairs[key.strip()] = rest.strip()
    return pairs


def _project_root(ctx: click.Context) -> Path:
    return Path(ctx.obj.get("project_dir") or Path.cwd())


@click.group(help="Planning-document workflow engine.")
@click.option("--json", "json_output", is_flag=True, help="Emit machine-readable JSON on stdout.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--events", is_flag=True, help="Emit workflow events to stderr.")
@click.option(
    "--project-dir",
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project root holding .docwf/config.yml (default: current directory).",
)
@click.option("--docs-dir", "docs_dir", type=str, help="Directory of the planning documents, relative to the project root.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    events: bool,
    project_dir: Path | None,
    docs_dir: str | None,
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["json"] = bool(json_output)
    ctx.obj["events"] = bool(events)
    ctx.obj["project_dir"] = project_dir
    ctx.obj["docs_dir"] = docs_dir
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("workflows")
@click.option("--all", "show_all", is_flag=True, help="Include hidden workflows (steps of combined workflows).")
@click.pass_context
def workflows_cmd(ctx: click.Context, show_all: bool) -> None:
    try:
        catalog = WorkflowCatalog.load_default()
        definitions = catalog.get_all() if show_all else catalog.visible()
        summaries = [
            WorkflowSummary(
                name=d.name,
                display_name=d.display_name,
                description=d.description,
                combined=d.is_combined,
                hidden=d.hidden,
            )
            for d in definitions
        ]

        if _get_json_mode(ctx):
            _json_emit(WorkflowsOutput(exit_code=0, workflows=summaries, total=len(summaries)))
            raise click.exceptions.Exit(0)

        width = max((len(s.name) for s in summaries), default=0)
        for s in summaries:
            click.echo(f"{s.name:<{width}}  {s.display_name}")
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(WorkflowsOutput(exit_code=1, error=str(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e


@cli.command("show")
@click.argument("name", type=str)
@click.pass_context
def show_cmd(ctx: click.Context, name: str) -> None:
    try:
        catalog = WorkflowCatalog.load_default()
        d = catalog.get_definition(name)
        detail = WorkflowDetail(
            name=d.name,
            display_name=d.display_name,
            description=d.description,
            intent=d.intent,
            execution_mode=determine_execution_mode(d).value,
            family=None if d.is_combined else family_for(d.name).value,
            read_files=[f.value for f in d.read_files],
            write_files=[f.value for f in d.write_files],
            risk=d.risk.value,
            confirmation=d.confirmation.value,
            uses_ai=d.uses_ai,
            combined_steps=list(d.combined_steps),
            rules=list(d.rules),
        )

        if _get_json_mode(ctx):
            _json_emit(ShowOutput(exit_code=0, workflow=detail))
            raise click.exceptions.Exit(0)

        click.echo(f"{detail.display_name} ({detail.name})")
        click.echo(f"  {detail.description}")
        click.echo(f"  mode: {detail.execution_mode}")
        click.echo(f"  reads: {', '.join(detail.read_files) or '-'}")
        click.echo(f"  writes: {', '.join(detail.write_files) or '-'}")
        click.echo(f"  risk: {detail.risk}  confirmation: {detail.confirmation}")
        if detail.combined_steps:
            click.echo(f"  steps: {' -> '.join(detail.combined_steps)}")
    except click.exceptions.Exit:
        raise
    except Exception as e:
        if _get_json_mode(ctx):
            _json_emit(ShowOutput(exit_code=1, error=str(e)))
            raise click.exceptions.Exit(1)
        raise click.ClickException(str(e)) from e


def _build_engine(
    ctx: click.Context,
    response: Path | None,
    step_responses: dict[str, str],
) -> WorkflowEngine:
    project_root = _project_root(ctx)
    cfg = load_config(
        project_root=project_root,
        user_home=Path.home(),
        overrides={"docs_dir": ctx.obj.get("docs_dir")},
    )

    if response is not None or step_responses:
        provider = FileResponseProvider(responses=step_responses, default=str(response) if response else None)
    else:
        provider = ProviderFactory.create(cfg.provider, cfg.provider_config)
    provider.validate()

    emitter = WorkflowEventEmitter()
    if ctx.obj.get("events"):
        emitter.subscribe(StderrEventObserver())

    return WorkflowEngine(
        catalog=WorkflowCatalog.load_default(),
        store=FileDocumentStore(project_root / cfg.docs_dir),
        provider=provider,
        commit_feed=GitLogCommitFeed(project_root),
        config=cfg,
        emitter=emitter,
    )


def _report(ctx: click.Context, name: str, result: EngineResult) -> None:
    exit_code = _STATUS_EXIT_CODES.get(result.status, EXIT_OK)
    awaiting = result.request.instruction if result.status == EngineStatus.AWAITING_RESPONSE and result.request else None

    if _get_json_mode(ctx):
        _json_emit(
            RunOutput(
                exit_code=exit_code,
                workflow=name,
                status=result.status.value,
                step=result.step_name,
                messages=result.messages,
                written_files=[f.value for f in result.written_files],
                hint=result.hint.message if result.hint else None,
                next_workflow=result.hint.next_workflow if result.hint else None,
                awaiting_instruction=awaiting,
                error=result.error_message,
            )
        )
        raise click.exceptions.Exit(exit_code)

    click.echo(f"workflow={name} status={result.status.value}" + (f" step={result.step_name}" if result.step_name else ""))
    for message in result.messages:
        click.echo(message)
    if result.error_message:
        click.echo(f"error: {result.error_message}" if exit_code == EXIT_ERROR else result.error_message)
    if awaiting:
        click.echo(f"Awaiting response for step '{result.step_name}'. Re-run with --response FILE.")
        click.echo(awaiting)
    if result.hint:
        click.echo(f"Next: {result.hint.message} (docwf run {result.hint.next_workflow})")
    if exit_code != EXIT_OK:
        raise click.exceptions.Exit(exit_code)


@cli.command("run")
@click.argument("name", type=str)
@click.option("--response", type=click.Path(dir_okay=False, path_type=Path), help="Response file for every step.")
@click.option(
    "--step-response",
    "step_response",
    multiple=True,
    help="STEP=FILE response for one step of a combined workflow (repeatable).",
)
@click.option("--input", "user_input", type=str, help="Work description or design summary for input-driven workflows.")
@click.option("--select", "select", multiple=True, help="ID=ACTION override for one proposal (repeatable).")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Apply default selections without prompting.")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    name: str,
    response: Path | None,
    step_response: tuple[str, ...],
    user_input: str | None,
    select: tuple[str, ...],
    assume_yes: bool,
) -> None:
    try:
        step_responses = _parse_pairs(step_response, "--step-response")
        overrides = _parse_pairs(select, "--select")
        engine = _build_engine(ctx, response, step_responses)

        if assume_yes:
            surface = AutoConfirmation(overrides)
        else:
            surface = InteractiveConfirmation({d.name: d for d in engine.catalog.get_all()}, overrides)

        result = engine.start(name, user_input=user_input)
        while result.status == EngineStatus.AWAITING_CONFIRMATION:
            result = engine.review_and_apply(surface)

        _report(ctx, name, result)
    except (click.exceptions.Exit, click.ClickException):
        raise
    except Exception as e:
        message = str(e.args[0]) if isinstance(e, KeyError) and e.args else str(e)
        if _get_json_mode(ctx):
            _json_emit(RunOutput(exit_code=1, workflow=name, error=message))
            raise click.exceptions.Exit(1)
        raise click.ClickException(message) from e


@cli.command("detect")
@click.argument("message", type=str)
@click.pass_context
def detect_cmd(ctx: click.Context, message: str) -> None:
    workflow = detect_workflow(message, WorkflowCatalog.load_default())
    exit_code = EXIT_OK if workflow else EXIT_ERROR

    if _get_json_mode(ctx):
        _json_emit(DetectOutput(exit_code=exit_code, message=message, workflow=workflow))
        raise click.exceptions.Exit(exit_code)

    if workflow is None:
        click.echo("No workflow matches that message.", err=True)
        raise click.exceptions.Exit(exit_code)
    click.echo(workflow)


@cli.command("providers")
@click.pass_context
def providers_cmd(ctx: click.Context) -> None:
    output = ProvidersOutput.from_metadata(ProviderFactory.get_all_metadata())
    if _get_json_mode(ctx):
        _json_emit(output)
        raise click.exceptions.Exit(0)
    for p in output.providers:
        click.echo(f"{p.name}  {p.description}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
