import asyncio
import logging
import os
from typing import Mapping, Protocol

from .errors import CommandError, FatalCredentialError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    async def run(
        self,
        name: str,
        *args: str,
        cwd: str | os.PathLike | None = None,
        env: Mapping[str, str] | None = None,
        input: str | None = None,
    ) -> str:
        """Run a command, return its combined stdout and stderr.

        Raise CommandError if it cannot be started or exits non-zero.
        """
        ...


class SubprocessRunner:
    """Run external commands as child processes.

    `env` is layered over the current environment, only for this one call.
    """

    async def run(
        self,
        name: str,
        *args: str,
        cwd: str | os.PathLike | None = None,
        env: Mapping[str, str] | None = None,
        input: str | None = None,
    ) -> str:
        full_env = None
        if env is not None:
            full_env = {**os.environ, **env}

        logger.debug(f"Running: {name} {' '.join(args)} ({cwd=})")
        try:
            proc = await asyncio.create_subprocess_exec(
                name,
                *args,
                cwd=cwd,
                env=full_env,
                stdin=asyncio.subprocess.PIPE if input is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise CommandError(name, args, None, str(e)) from e

        stdin = input.encode() if input is not None else None
        out, _ = await proc.communicate(stdin)
        output = out.decode(errors="replace")
        if proc.returncode != 0:
            raise CommandError(name, args, proc.returncode, output)
        return output


CREDENTIAL_TEMPLATE = "protocol={protocol}\nhost={host}\nusername={username}\npassword={password}\n"


async def provision_credential(
    runner: CommandRunner,
    token: str,
    host: str = "github.com",
    protocol: str = "https",
    username: str = "oauth2",
) -> None:
    """Store the token in git's in-memory credential cache.

    Later clones and fetches over `protocol://host` then authenticate
    without prompting.
    """
    try:
        await runner.run("git", "config", "--global", "credential.helper", "cache")
    except CommandError as e:
        raise FatalCredentialError(f"git config: {e.output.strip()}") from e

    credential = CREDENTIAL_TEMPLATE.format(
        protocol=protocol, host=host, username=username, password=token
    )
    try:
        await runner.run("git", "credential", "approve", input=credential)
    except CommandError as e:
        raise FatalCredentialError(
            f"git credential approve: {e.output.strip()}"
        ) from e

    logger.info(f"credential for {protocol}://{host} cached")
