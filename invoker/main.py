"""Application entrypoint: load the dashboard overview with isolated retries."""

from __future__ import annotations

import asyncio

import httpx

from invoker.config import get_settings
from invoker.domain.models import OverviewSnapshot
from invoker.logging import configure_logging, logger
from invoker.services.backend import BackendClient
from invoker.services.exceptions import describe_error
from invoker.services.executor import OperationExecutor
from invoker.services.notifications import NotificationSink
from invoker.services.orchestrator import BatchCall, ConcurrentOperationOrchestrator

OVERVIEW_SECTIONS = ("students", "coaches", "branches", "courses")


async def load_overview(
    client: BackendClient,
    *,
    orchestrator: ConcurrentOperationOrchestrator | None = None,
    notifier: NotificationSink | None = None,
) -> OverviewSnapshot:
    """Fetch every overview section concurrently; a failed section stays ``None``."""

    orchestrator = orchestrator or ConcurrentOperationOrchestrator(
        max_concurrency=get_settings().batch.max_concurrency
    )
    loaders = {
        "students": client.list_students,
        "coaches": client.list_coaches,
        "branches": client.list_branches,
        "courses": client.list_courses,
    }
    calls = [
        BatchCall(
            id=section,
            operation=OperationExecutor(
                loaders[section],
                notifier=notifier,
                name=f"overview_{section}",
            ).as_operation(),
        )
        for section in OVERVIEW_SECTIONS
    ]
    records = await orchestrator.execute_multiple(calls)
    sections = {record.id: record.data for record in records if record.ok}
    errors = [f"{record.id}: {describe_error(record.error)}" for record in records if not record.ok]
    return OverviewSnapshot(**sections, errors=errors)


async def main() -> None:
    configure_logging()
    settings = get_settings()

    async with httpx.AsyncClient() as http_client:
        client = BackendClient(http_client, settings=settings.backend)
        snapshot = await load_overview(client)

    logger.info(
        "overview_loaded",
        complete=snapshot.complete,
        sections=[section for section in OVERVIEW_SECTIONS if getattr(snapshot, section) is not None],
        errors=snapshot.errors,
    )


if __name__ == "__main__":
    asyncio.run(main())
