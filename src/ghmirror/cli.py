import asyncio
import logging
import sys
from pathlib import Path

from ._github import GitHubClient
from .config import CONFIG_FILE_PATH, MirrorConfig, load_config, load_token, validate
from .errors import FatalError
from .git import SubprocessRunner
from .logging_config import setup_logging
from .pool import RunStats, run

logger = logging.getLogger(__name__)


def mirror(config: MirrorConfig, token: str) -> RunStats:
    """github mirror

    Mirror every repository the token can see into
    <output_dir>/<owner>/<name>.git, update the ones already there.
    """
    logger.debug("into asyncio runtime")
    return asyncio.run(_mirror(config, token))


async def _mirror(config: MirrorConfig, token: str) -> RunStats:
    async with GitHubClient(
        token, api_url=config.api_url, per_page=config.per_page
    ) as client:
        return await run(config, client, SubprocessRunner(), token=token)


def main():
    import argparse

    parser = argparse.ArgumentParser(
        description=mirror.__doc__, formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        "--set-credential",
        action="store_true",
        default=None,
        help="Cache GITHUB_TOKEN as git credential before mirroring",
    )
    parser.add_argument("--workers", type=int, help="Number of concurrent workers")
    parser.add_argument("--output-dir", help="Where to put the mirrors")
    parser.add_argument(
        "--config", type=Path, default=CONFIG_FILE_PATH, help="Config file"
    )
    parser.add_argument("--debug", action="store_true", help="Set log level as DEBUG")
    args = parser.parse_args()

    setup_logging(args.debug)

    logger.debug(f"{args=}")

    try:
        config = load_config(args.config).mirror
        if args.set_credential is not None:
            config.set_credential = args.set_credential
        if args.workers is not None:
            config.workers = args.workers
        if args.output_dir is not None:
            config.output_dir = args.output_dir
        validate(config)

        mirror(config, load_token())
    except FatalError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
