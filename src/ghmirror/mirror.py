import enum
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ._github import Repository
from .errors import (
    CloneFailed,
    CommandError,
    DirectoryCreationError,
    FetchFailed,
    GCFailed,
)
from .git import CommandRunner

logger = logging.getLogger(__name__)

# one-shot override, keeps gc in the foreground so its exit status is real
GC_ENV = {
    "GIT_CONFIG_COUNT": "1",
    "GIT_CONFIG_KEY_0": "gc.autoDetach",
    "GIT_CONFIG_VALUE_0": "false",
}


class Action(enum.Enum):
    CLONE = "clone"
    FETCH = "fetch"


@dataclass(frozen=True)
class MirrorPath:
    org_dir: Path
    local_path: Path


def resolve_path(repo: Repository, root: Path = Path(".")) -> MirrorPath:
    """Map `owner/name` to `root/owner` and `root/owner/name.git`.

    The owner directory is created if missing.
    """
    name = PurePosixPath(repo.full_name)
    org_dir = root / name.parent
    local_path = root / f"{name}.git"

    try:
        org_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(
            repo.full_name, f"creating organization dir {org_dir}: {e}"
        ) from e

    return MirrorPath(org_dir=org_dir, local_path=local_path)


async def mirror_repo(
    repo: Repository,
    path: MirrorPath,
    runner: CommandRunner,
) -> Action:
    """Clone a mirror if there is none yet, else fetch into it and gc.

    Only the existence of the directory is checked: a clone that died
    half-way is fetched into like any other mirror.
    """
    if not path.local_path.exists():
        await _clone(repo, path.local_path, runner)
        return Action.CLONE

    await _fetch(repo, path.local_path, runner)
    await _gc(repo, path.local_path, runner)
    return Action.FETCH


async def _clone(repo: Repository, local_path: Path, runner: CommandRunner):
    logger.info(f"Clone into {local_path}")
    try:
        await runner.run("git", "clone", "--mirror", repo.clone_url, str(local_path))
    except CommandError as e:
        logger.error(f"{repo.full_name}: {e.output.rstrip()}")
        raise CloneFailed(repo.full_name, str(e)) from e


async def _fetch(repo: Repository, local_path: Path, runner: CommandRunner):
    logger.info(f"Fetch in {local_path}")
    try:
        await runner.run("git", "remote", "update", "-p", cwd=local_path)
    except CommandError as e:
        logger.error(f"{repo.full_name}: {e.output.rstrip()}")
        raise FetchFailed(repo.full_name, str(e)) from e


async def _gc(repo: Repository, local_path: Path, runner: CommandRunner):
    logger.debug(f"gc in {local_path}")
    try:
        await runner.run("git", "gc", "--force", cwd=local_path, env=GC_ENV)
    except CommandError as e:
        logger.error(f"{repo.full_name}: git gc in {local_path}: {e.output.rstrip()}")
        raise GCFailed(repo.full_name, str(e)) from e
