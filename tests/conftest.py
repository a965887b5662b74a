"""
Fakes for the two outside collaborators of a run: the GitHub listing and
the git command line.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

import pytest

from ghmirror._github import Repository
from ghmirror.config import MirrorConfig
from ghmirror.errors import CommandError


@dataclass
class Call:
    name: str
    args: tuple
    cwd: Path | None
    env: Mapping[str, str] | None
    input: str | None

    @property
    def subcommand(self) -> str:
        return self.args[0]


class FakeRunner:
    """Records git invocations; a successful clone creates the target dir."""

    def __init__(self, fail: Callable[[Call], bool] | None = None):
        self.calls: list[Call] = []
        self.fail = fail or (lambda call: False)

    async def run(self, name, *args, cwd=None, env=None, input=None) -> str:
        call = Call(name, args, Path(cwd) if cwd is not None else None, env, input)
        self.calls.append(call)
        # let sibling workers interleave
        await asyncio.sleep(0)

        if self.fail(call):
            raise CommandError(name, args, 128, f"fatal: {call.subcommand} failed\n")

        if args[:2] == ("clone", "--mirror"):
            Path(args[3]).mkdir(parents=True)
        return ""

    def by_subcommand(self, subcommand: str) -> list[Call]:
        return [c for c in self.calls if c.subcommand == subcommand]


class FakeClient:
    """Serves `repos` `per_page` at a time, GitHub style (page 0 is page 1)."""

    def __init__(
        self,
        repos: list[Repository] | None = None,
        per_page: int = 2,
        pages: dict[int, tuple[list[Repository], int]] | None = None,
        errors: dict[int, Exception] | None = None,
    ):
        if pages is None:
            pages = {}
            repos = repos or []
            chunks = [repos[i : i + per_page] for i in range(0, len(repos), per_page)]
            for i, chunk in enumerate(chunks, start=1):
                pages[i] = (chunk, i + 1 if i < len(chunks) else 0)
        self.pages = pages
        self.errors = errors or {}
        self.requested: list[int] = []

    async def list_page(self, page: int):
        self.requested.append(page)
        await asyncio.sleep(0)
        page = page or 1
        if page in self.errors:
            raise self.errors[page]
        return self.pages.get(page, ([], 0))


def make_repo(full_name: str) -> Repository:
    return Repository(
        full_name=full_name, clone_url=f"https://github.com/{full_name}.git"
    )


@pytest.fixture
def config(tmp_path: Path) -> MirrorConfig:
    return MirrorConfig(output_dir=str(tmp_path), workers=3)
