import logging

from rich.logging import RichHandler

FORMAT = "%(message)s"


def setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format=FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(show_path=debug, rich_tracebacks=True)],
        force=True,
    )

    # aiohttp 在 DEBUG 下过于啰嗦
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
