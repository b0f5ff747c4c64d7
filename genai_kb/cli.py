"""GenAI KB Sync CLI 인터페이스.

사용자 KB 조정, 인덱싱 작업 조회/폴링, 원격 KB 조회, 사용자 상태 관리 명령어 제공.

종료 코드:
    0: 성공
    1: 일반/입력 오류 (잘못된 인자, 대상 없음)
    2: 설정 오류 (토큰 누락, 프로비저닝 식별자 확정 실패)
    3: 연결 오류 (GenAI API 네트워크 문제)
    4: 동기화/처리 오류 (조정 실패, 인덱싱 실패/시간 초과)
    5: 내부 오류 (예상치 못한 예외)
"""

import time
from enum import IntEnum
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .client import GenAIGateway
from .config import Settings, get_settings
from .errors import (
    ConfigMissingError,
    ErrorKind,
    GenAIAPIError,
    GenAIConnectionError,
    KBSyncError,
)
from .logging_config import Loggers, configure_logging
from .models import IndexingJob, IndexingJobStatus, JobProgress, ReconcileResult, UserKbState
from .services import JobMonitor, Reconciler
from .storage import get_state_store

logger = Loggers.cli()


class ExitCode(IntEnum):
    """CLI 작업을 위한 표준화된 종료 코드."""

    SUCCESS = 0  # 성공
    INPUT_ERROR = 1  # 잘못된 인자, 대상 없음
    CONFIG_ERROR = 2  # 토큰 누락, 식별자 확정 실패
    CONNECTION_ERROR = 3  # GenAI API 네트워크 문제
    SYNC_ERROR = 4  # 조정/인덱싱 실패
    INTERNAL_ERROR = 5  # 예상치 못한 예외


app = typer.Typer(
    name="genai-kb",
    help="GenAI KB Sync - Reconcile knowledge bases and track indexing jobs",
    add_completion=False,
)

kb_app = typer.Typer(help="Inspect remote knowledge bases")
jobs_app = typer.Typer(help="Inspect indexing jobs")
state_app = typer.Typer(help="Manage stored user state")

app.add_typer(kb_app, name="kb")
app.add_typer(jobs_app, name="jobs")
app.add_typer(state_app, name="state")

console = Console()

STATUS_COLORS = {
    IndexingJobStatus.PENDING: "white",
    IndexingJobStatus.RUNNING: "blue",
    IndexingJobStatus.COMPLETED: "green",
    IndexingJobStatus.FAILED: "red",
}


# ==================== 공통 헬퍼 ====================


def build_gateway(settings: Settings) -> GenAIGateway:
    """설정으로부터 게이트웨이를 생성합니다.

    Raises:
        ConfigMissingError: API 토큰이 설정되지 않은 경우.
    """
    if not settings.genai.api_token:
        raise ConfigMissingError("DIGITALOCEAN_TOKEN is not set")
    return GenAIGateway.from_settings(settings.genai)


def _exit(message: str, code: ExitCode) -> NoReturn:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code)


def _exit_code_for(kind: ErrorKind) -> ExitCode:
    if kind == ErrorKind.INVALID_REQUEST:
        return ExitCode.INPUT_ERROR
    if kind == ErrorKind.CONFIG_MISSING:
        return ExitCode.CONFIG_ERROR
    return ExitCode.SYNC_ERROR


def _exit_for_error(error: Exception) -> NoReturn:
    """예외 종류에 맞는 종료 코드로 종료합니다."""
    if isinstance(error, KBSyncError):
        _exit(f"{error.error_kind.value}: {error.message}", _exit_code_for(error.error_kind))
    if isinstance(error, GenAIAPIError):
        code = ExitCode.INPUT_ERROR if error.is_not_found else ExitCode.SYNC_ERROR
        _exit(f"API error ({error.status_code}): {error.message}", code)
    if isinstance(error, GenAIConnectionError):
        _exit(f"Connection error: {error}", ExitCode.CONNECTION_ERROR)
    raise error


def _open_gateway(settings: Settings) -> GenAIGateway:
    try:
        return build_gateway(settings)
    except ConfigMissingError as e:
        _exit_for_error(e)


def _format_ratio(progress: Optional[float]) -> str:
    return f"{progress * 100:.0f}%" if progress is not None else "-"


def _format_progress(job: IndexingJob) -> str:
    return _format_ratio(job.progress)


# ==================== Reconcile Command ====================


@app.command("reconcile")
def reconcile(
    user_id: str = typer.Argument(..., help="User ID"),
    item_path: str = typer.Option(..., "--item-path", "-p", help="Desired data source path"),
    kb_name: Optional[str] = typer.Option(None, "--kb-name", "-k", help="Knowledge base name (stored name if omitted)"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Bucket name (DIGITALOCEAN_BUCKET if omitted)"),
    resume_job: Optional[str] = typer.Option(None, "--resume-job", help="Indexing job ID to resume"),
    wait: bool = typer.Option(False, "--wait", "-w", help="Poll the indexing job to completion"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", help="Maximum poll attempts"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between polls"),
):
    """Reconcile a user's knowledge base and start indexing."""
    settings = get_settings()
    store = get_state_store(settings.ensure_data_dir())

    stored = store.get(user_id)
    name = kb_name or (stored.kb_name if stored else None)
    if not name:
        _exit("No knowledge base name stored for this user. Provide --kb-name.", ExitCode.INPUT_ERROR)

    base = stored or UserKbState(user_id=user_id, kb_name=name)
    if base.kb_name != name:
        base = base.model_copy(update={"kb_name": name, "kb_id": None, "last_indexing_job_id": None})
    if resume_job:
        base = base.model_copy(update={"last_indexing_job_id": resume_job})

    bucket_name = bucket or settings.storage.bucket_name

    with _open_gateway(settings) as gateway:
        monitor = JobMonitor(gateway.indexing, settings.monitor)
        reconciler = Reconciler(gateway, settings.genai, monitor)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Reconciling...", total=None)
            outcome, _ = reconciler.reconcile_state(base, item_path, bucket_name)

        if not isinstance(outcome, ReconcileResult):
            code = _exit_code_for(outcome.error_kind)
            hint = " (retryable)" if outcome.retryable else ""
            _exit(f"✗ {outcome.error_kind.value}: {outcome.message}{hint}", code)

        store.update(
            user_id,
            lambda current: (current or base)
            .model_copy(update={"kb_name": name})
            .with_reconcile_result(outcome),
        )

        panel_content = f"""
[bold]KB ID:[/bold] {outcome.kb_id}
[bold]Data Source ID:[/bold] {outcome.data_source_id}
[bold]Job ID:[/bold] {outcome.job_id}
[bold]Job Adopted:[/bold] {"Yes" if outcome.job_adopted else "No"}
[bold]Changes:[/bold] {", ".join(outcome.mutations) or "none"}
"""
        console.print(Panel(panel_content, title=f"Reconciled: {name}"))

        if not wait:
            return

        job = _poll_with_progress(monitor, outcome.job_id, max_attempts, interval)
        store.update(user_id, lambda current: (current or base).with_completed_job(job))
        console.print(f"[green]✓ Indexing completed: {job.id}[/green]")


def _poll_with_progress(
    monitor: JobMonitor,
    job_id: str,
    max_attempts: Optional[int],
    interval: Optional[float],
) -> IndexingJob:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Indexing...", total=None)

        def on_progress(job: IndexingJob, attempt: int) -> None:
            progress.update(
                task,
                description=f"Indexing {job.status.value} {_format_progress(job)} (attempt {attempt})",
            )

        try:
            return monitor.poll(
                job_id,
                max_attempts=max_attempts,
                interval_seconds=interval,
                on_progress=on_progress,
            )
        except (KBSyncError, GenAIAPIError, GenAIConnectionError) as e:
            logger.error("인덱싱 작업 폴링 실패", job_id=job_id, error=str(e))
            progress.stop()
            _exit_for_error(e)


# ==================== Job Commands ====================


@app.command("status")
def status(
    job_id: str = typer.Argument(..., help="Indexing job ID"),
    watch: bool = typer.Option(False, "--watch", help="Refresh until the job finishes"),
):
    """Show the current status of an indexing job."""
    settings = get_settings()

    with _open_gateway(settings) as gateway:
        monitor = JobMonitor(gateway.indexing, settings.monitor)
        job_progress = _check(monitor, job_id)

        if watch:
            refreshes = 1
            while not job_progress.status.is_terminal:
                if refreshes >= settings.monitor.max_attempts:
                    _exit(
                        f"Job {job_id} still {job_progress.status.value} after {refreshes} checks",
                        ExitCode.SYNC_ERROR,
                    )
                console.print(
                    f"{job_progress.status.value} {_format_ratio(job_progress.progress)}",
                    style=STATUS_COLORS.get(job_progress.status, "white"),
                )
                time.sleep(settings.monitor.status_cadence_seconds)
                job_progress = _check(monitor, job_id)
                refreshes += 1

    color = STATUS_COLORS.get(job_progress.status, "white")
    panel_content = f"""
[bold]Job ID:[/bold] {job_progress.job_id}
[bold]Status:[/bold] [{color}]{job_progress.status.value}[/{color}]
[bold]Progress:[/bold] {_format_ratio(job_progress.progress)}
[bold]Error:[/bold] {job_progress.error or "-"}
"""
    console.print(Panel(panel_content, title="Indexing Job"))


def _check(monitor: JobMonitor, job_id: str) -> JobProgress:
    try:
        return monitor.check(job_id)
    except (GenAIAPIError, GenAIConnectionError) as e:
        _exit_for_error(e)


@app.command("poll")
def poll(
    job_id: str = typer.Argument(..., help="Indexing job ID"),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", help="Maximum poll attempts"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between polls"),
):
    """Poll an indexing job until it completes or fails."""
    settings = get_settings()

    with _open_gateway(settings) as gateway:
        monitor = JobMonitor(gateway.indexing, settings.monitor)
        job = _poll_with_progress(monitor, job_id, max_attempts, interval)

    console.print(f"[green]✓ Indexing completed: {job.id}[/green]")


@jobs_app.command("list")
def jobs_list(
    kb_id: str = typer.Argument(..., help="Knowledge base ID"),
):
    """List indexing jobs for a knowledge base."""
    settings = get_settings()

    with _open_gateway(settings) as gateway:
        try:
            jobs = gateway.indexing.list_for_kb(kb_id)
        except (GenAIAPIError, GenAIConnectionError) as e:
            _exit_for_error(e)

    if not jobs:
        console.print("[yellow]No indexing jobs.[/yellow]")
        return

    table = Table(title="Indexing Jobs")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Status", style="magenta")
    table.add_column("Progress", style="green")
    table.add_column("Created", style="yellow")

    for job in jobs:
        color = STATUS_COLORS.get(job.status, "white")
        table.add_row(
            job.id,
            f"[{color}]{job.status.value}[/{color}]",
            _format_progress(job),
            job.created_at.strftime("%Y-%m-%d %H:%M") if job.created_at else "-",
        )

    console.print(table)


# ==================== KB Commands ====================


@kb_app.command("list")
def kb_list():
    """List remote knowledge bases."""
    settings = get_settings()

    with _open_gateway(settings) as gateway:
        try:
            kbs = gateway.kb.list()
        except (GenAIAPIError, GenAIConnectionError) as e:
            _exit_for_error(e)

    if not kbs:
        console.print("[yellow]No knowledge bases.[/yellow]")
        return

    table = Table(title="Knowledge Bases")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Region", style="blue")
    table.add_column("Data Sources", style="magenta")

    for kb in kbs:
        table.add_row(kb.id, kb.name, kb.region or "-", str(len(kb.data_sources)))

    console.print(table)


@kb_app.command("show")
def kb_show(
    kb_id: str = typer.Argument(..., help="Knowledge base ID"),
):
    """Show knowledge base details."""
    settings = get_settings()

    with _open_gateway(settings) as gateway:
        try:
            kb = gateway.kb.get(kb_id)
        except (GenAIAPIError, GenAIConnectionError) as e:
            _exit_for_error(e)

    sources = "\n".join(
        f"  • {ds.id or '-'}  {ds.bucket_name or '-'}/{ds.item_path or '-'}" for ds in kb.data_sources
    ) or "  (none)"
    panel_content = f"""
[bold]Name:[/bold] {kb.name}
[bold]ID:[/bold] {kb.id}
[bold]Region:[/bold] {kb.region or "-"}
[bold]Database:[/bold] {kb.database_id or "-"}
[bold]Embedding Model:[/bold] {kb.embedding_model_id or "-"}
[bold]Data Sources:[/bold]
{sources}
"""
    console.print(Panel(panel_content, title=f"Knowledge Base: {kb.name}"))


# ==================== State Commands ====================


@state_app.command("show")
def state_show(
    user_id: str = typer.Argument(..., help="User ID"),
):
    """Show the stored state for a user."""
    settings = get_settings()
    store = get_state_store(settings.ensure_data_dir())

    state = store.get(user_id)
    if state is None:
        _exit(f"No state stored for user: {user_id}", ExitCode.INPUT_ERROR)

    panel_content = f"""
[bold]User:[/bold] {state.user_id}
[bold]KB Name:[/bold] {state.kb_name}
[bold]KB ID:[/bold] {state.kb_id or "-"}
[bold]Last Job:[/bold] {state.last_indexing_job_id or "-"}
[bold]Pending Files:[/bold] {len(state.pending_files)}
[bold]Indexed Files:[/bold] {len(state.indexed_files)}
[bold]Revision:[/bold] {state.revision}
"""
    console.print(Panel(panel_content, title=f"User State: {user_id}"))


@state_app.command("add-pending")
def state_add_pending(
    user_id: str = typer.Argument(..., help="User ID"),
    files: list[str] = typer.Argument(..., help="File keys awaiting indexing"),
    kb_name: Optional[str] = typer.Option(None, "--kb-name", "-k", help="Knowledge base name for a new user"),
):
    """Record files awaiting indexing for a user."""
    settings = get_settings()
    store = get_state_store(settings.ensure_data_dir())

    if store.get(user_id) is None and not kb_name:
        _exit("No state stored for this user. Provide --kb-name.", ExitCode.INPUT_ERROR)

    def apply(current: Optional[UserKbState]) -> UserKbState:
        base = current or UserKbState(user_id=user_id, kb_name=kb_name)
        return base.with_pending_files(files)

    saved = store.update(user_id, apply)
    console.print(f"[green]✓ {len(saved.pending_files)} file(s) pending for {user_id}[/green]")


# ==================== Main Entry Point ====================


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs as JSON"),
):
    """GenAI KB Sync CLI."""
    log_level = "DEBUG" if verbose else get_settings().log_level
    configure_logging(level=log_level, json_format=json_logs)


def cli():
    """CLI 진입점.

    전역 예외 처리를 통해 적절한 종료 코드 반환.
    """
    try:
        app()
    except ConnectionError as e:
        console.print(f"[red]Connection error: {e}[/red]")
        raise SystemExit(ExitCode.CONNECTION_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        raise SystemExit(ExitCode.SUCCESS)
    except Exception as e:
        console.print(f"[red]Internal error: {e}[/red]")
        raise SystemExit(ExitCode.INTERNAL_ERROR)


if __name__ == "__main__":
    cli()
