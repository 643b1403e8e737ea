"""Running the external tool as a one-shot child process."""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import OutputCaptureError, ToolSpawnError
from .log import get_logger

logger = get_logger(__name__)

# Sent in case the tool prompts despite --yes
FALLBACK_INPUT = b"\n"


@dataclass
class ToolOutput:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_tool(
    argv: Sequence[str],
    stdin_input: Optional[bytes] = FALLBACK_INPUT,
    label: str = "TOOL",
) -> ToolOutput:
    """Spawn `argv`, feed it `stdin_input`, and wait for it to exit.

    With `stdin_input=None` the child gets no stdin at all. There is no
    timeout: the call returns only when the child exits.

    Raises:
        ToolSpawnError: the executable is missing or can't be started
        OutputCaptureError: reading the child's output failed
    """
    logger.info("[%s] Full command: %s", label, " ".join(argv))
    logger.debug("[%s] Spawning process...", label)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin_input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("[%s] Failed to spawn %s: %s", label, argv[0], e)
        raise ToolSpawnError(f"Failed to spawn {argv[0]}: {e}") from e

    logger.debug("[%s] Process spawned, PID: %s", label, proc.pid)
    if stdin_input is not None:
        logger.debug("[%s] Writing fallback input to stdin", label)

    try:
        stdout, stderr = await proc.communicate(input=stdin_input)
    except OSError as e:
        logger.error("[%s] Failed to read output: %s", label, e)
        raise OutputCaptureError(f"Failed to read output: {e}") from e

    output = ToolOutput(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    logger.info("[%s] Process completed with status %d", label, output.returncode)
    if output.stdout:
        logger.debug("[%s] STDOUT:\n%s", label, output.stdout)
    if output.stderr:
        logger.debug("[%s] STDERR:\n%s", label, output.stderr)
    return output
