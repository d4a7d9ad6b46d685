from __future__ import annotations

import uuid
from pathlib import Path

import typer
from rich import print

from tiksync.config import Settings
from tiksync.core.logging import configure_logging, get_logger, tail_log
from tiksync.services import SyncService, Worker, run_doctor_checks
from tiksync.shopware import ShopwareClient
from tiksync.sources import QueueDirectory

app = typer.Typer(no_args_is_help=True, help="tiksync: replay TikTok Shop order exports into Shopware")


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _build_service(settings: Settings, name: str) -> tuple[SyncService, str]:
    if not settings.shopware.is_configured:
        print("[red]Shopware API is not configured[/red] (SHOPWARE_API_URL / _USERNAME / _KEY)")
        raise typer.Exit(code=2)

    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id)
    logger = get_logger(name, correlation_id)
    client = ShopwareClient(settings.shopware, logger=get_logger("tiksync.shopware", correlation_id))
    return SyncService(settings=settings, client=client, logger=logger), correlation_id


@app.command("process")
def process_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Order export CSV"),
) -> None:
    settings = _load_settings()
    service, correlation_id = _build_service(settings, "tiksync.sync")
    stats = service.process_file(file.resolve())

    colour = "red" if stats["status"] == "aborted" else "green"
    print(f"[{colour}]File {stats['status']}[/{colour}]. correlation_id={correlation_id}")
    for key, value in stats.items():
        print(f"- {key}: {value}")
    if stats["status"] == "aborted":
        raise typer.Exit(code=1)


@app.command("worker")
def worker_command(
    once: bool = typer.Option(False, "--once", help="Process the current queue and exit"),
    interval: float | None = typer.Option(None, help="Seconds between polls (default TIKSYNC_POLL_INTERVAL_SEC)"),
) -> None:
    settings = _load_settings()
    service, correlation_id = _build_service(settings, "tiksync.worker")
    worker = Worker(
        queue=QueueDirectory(settings.queue_dir, settings.queue_pattern),
        service=service,
        logger=service.logger,
        poll_interval_sec=interval if interval is not None else settings.poll_interval_sec,
    )
    try:
        results = worker.run(once=once)
    except KeyboardInterrupt:
        print("[yellow]Worker interrupted[/yellow]")
        return
    print(f"[green]Worker finished[/green]. correlation_id={correlation_id}, files={len(results)}")


@app.command("enqueue")
def enqueue_command(
    files: list[Path] = typer.Argument(..., help="CSV files to queue"),
) -> None:
    settings = _load_settings()
    queue = QueueDirectory(settings.queue_dir, settings.queue_pattern)
    failed = 0
    for source in files:
        try:
            target = queue.enqueue(source)
            print(f"[green]Queued[/green] {source} -> {target.name}")
        except OSError as exc:
            failed += 1
            print(f"[red]Upload error[/red] {source}: {exc}")
    if failed:
        raise typer.Exit(code=1)


@app.command("logs")
def logs_command(
    lines: int = typer.Option(200, help="Number of trailing lines"),
) -> None:
    settings = _load_settings()
    tail = tail_log(settings.logs_dir, lines=lines)
    if not tail:
        print("[yellow]Log file not found.[/yellow]")
        return
    for line in tail:
        typer.echo(line)


@app.command("doctor")
def doctor_command() -> None:
    settings = _load_settings()
    client = None
    if settings.shopware.is_configured:
        logger = get_logger("tiksync.doctor", "doctor")
        client = ShopwareClient(settings.shopware, logger=logger)
    checks = run_doctor_checks(settings, client)

    print("Doctor results:")
    for check in checks:
        status = check["status"].upper()
        print(f"- [{status}] {check['check']}: {check['detail']}")


if __name__ == "__main__":
    app()
