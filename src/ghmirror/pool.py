import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from ._github import Repository, list_repos
from ._github.web import RepoLister
from .config import MirrorConfig, validate
from .errors import FatalListingError, RepositoryError
from .git import CommandRunner, provision_credential
from .mirror import Action, mirror_repo, resolve_path

logger = logging.getLogger(__name__)

type Handler = Callable[[Repository], Awaitable[Action]]

# None in the queue: listing is over, the worker may exit
type RepoQueue = asyncio.Queue[Repository | None]


@dataclass
class RunStats:
    listed: int = 0
    cloned: int = 0
    fetched: int = 0
    failed: int = 0


async def dispatch(
    queue: RepoQueue,
    handler: Handler,
    workers: int,
    stats: RunStats | None = None,
):
    """Drain `queue` with `workers` concurrent workers.

    Returns when every worker has seen its end-of-queue marker. A failing
    repository is logged and skipped, it never reaches the caller.
    """
    if stats is None:
        stats = RunStats()

    async with asyncio.TaskGroup() as tg:
        for i in range(workers):
            tg.create_task(_worker(queue, handler, stats), name=f"worker-{i}")


async def _worker(queue: RepoQueue, handler: Handler, stats: RunStats):
    while True:
        repo = await queue.get()
        if repo is None:
            return

        try:
            action = await handler(repo)
        except RepositoryError as e:
            stats.failed += 1
            logger.error(str(e))
        except Exception:
            stats.failed += 1
            logger.exception(f"{repo.full_name}: unexpected error")
        else:
            if action is Action.CLONE:
                stats.cloned += 1
            else:
                stats.fetched += 1


async def run(
    config: MirrorConfig,
    client: RepoLister,
    runner: CommandRunner,
    token: str = "",
) -> RunStats:
    """Mirror every repository `client` lists into `config.output_dir`.

    Raises FatalCredentialError before anything is listed if the credential
    cannot be provisioned, and FatalListingError if listing fails on any
    page. Per-repository failures only show up in the log and the stats.
    """
    validate(config)

    if config.set_credential:
        await provision_credential(runner, token, host=config.credential_host)

    root = Path(config.output_dir)
    workers = config.workers
    stats = RunStats()
    queue: RepoQueue = asyncio.Queue(maxsize=2 * workers)

    async def produce():
        async for repo in list_repos(client):
            stats.listed += 1
            await queue.put(repo)
        logger.info(f"listed {stats.listed} repositories")

        for _ in range(workers):
            await queue.put(None)

    async def handle(repo: Repository) -> Action:
        path = resolve_path(repo, root)
        return await mirror_repo(repo, path, runner)

    try:
        async with asyncio.TaskGroup() as tg:
            tg.create_task(produce(), name="lister")
            tg.create_task(dispatch(queue, handle, workers, stats), name="dispatch")
    except BaseExceptionGroup as eg:
        fatal = eg.subgroup(FatalListingError)
        if fatal is None:
            raise
        raise fatal.exceptions[0]

    logger.info(
        f"done: {stats.listed} listed, {stats.cloned} cloned, "
        f"{stats.fetched} fetched, {stats.failed} failed"
    )
    return stats
