import asyncio
import logging
from typing import AsyncIterator, Protocol, Sequence, Tuple

import aiohttp
import orjson
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .. import __version__
from ..errors import FatalListingError
from .rest import Repository

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
PER_PAGE = 100
TIMEOUT = 30

# repositories of one page, and the page after it (0 means no next page)
type Page = Tuple[Sequence[Repository], int]


class RepoLister(Protocol):
    async def list_page(self, page: int) -> Page: ...


class GitHubClient:
    """List the repositories of the authenticated account.

    Must be used as an async context manager, it owns the HTTP session.
    """

    def __init__(
        self,
        token: str,
        api_url: str = API_URL,
        per_page: int = PER_PAGE,
        timeout: float = TIMEOUT,
    ):
        self.api_url = api_url.removesuffix("/")
        self.per_page = per_page
        self._headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"token {token}",
            "User-Agent": f"ghmirror/{__version__}",
        }
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "GitHubClient":
        self._session = aiohttp.ClientSession(
            headers=self._headers, timeout=self._timeout
        )
        return self

    async def __aexit__(self, *exc) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def list_page(self, page: int) -> Page:
        try:
            content, next_page = await self._get_page(page)
            data = orjson.loads(content)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            repos = [Repository.from_dict(item) for item in data]
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FatalListingError(f"listing repositories (page {page}): {e}") from e
        except (ValueError, LookupError, TypeError, AttributeError) as e:
            raise FatalListingError(
                f"bad repository list (page {page}): {e}"
            ) from e

        return repos, next_page

    # 网络抖动时整页重试, 仍然失败则整个运行失败
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(
            (asyncio.TimeoutError, aiohttp.ClientConnectionError)
        ),
        reraise=True,
    )
    async def _get_page(self, page: int) -> Tuple[bytes, int]:
        if self._session is None:
            raise RuntimeError("GitHubClient used outside of `async with`")

        params = {"per_page": self.per_page}
        if page > 0:
            params["page"] = page

        url = f"{self.api_url}/user/repos"
        logger.debug(f"GET {url} {params=}")
        async with self._session.get(url, params=params) as resp:
            resp.raise_for_status()
            content = await resp.read()
            next_link = resp.links.get("next")

        if next_link is None:
            return content, 0
        return content, int(next_link["url"].query.get("page", 0))


async def list_repos(client: RepoLister) -> AsyncIterator[Repository]:
    """Yield every repository of every page, in server order.

    Stops when the reported next page does not move past the current one,
    whatever the server claims is left.
    """
    page = 0
    while True:
        repos, next_page = await client.list_page(page)
        logger.debug(f"page {page}: {len(repos)} repos, next page {next_page}")

        for repo in repos:
            yield repo

        if next_page <= page:
            break
        page = next_page
