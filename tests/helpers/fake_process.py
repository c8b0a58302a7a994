"""Stand-in for ``asyncio.subprocess.Process`` used by the Remotion adapters."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock


class FakeProcess:
    """Process whose stdout yields ``output`` in small chunks.

    Parameters
    ----------
    output : bytes
        Combined stdout/stderr of the command.
    returncode : int
        Exit status reported by ``wait()``.
    chunk_size : int
        Bytes per ``read()`` call; small values exercise line reassembly.
    hang : bool
        Make ``read()`` block forever (for timeout tests).
    """

    def __init__(self, output=b"", returncode=0, chunk_size=5, hang=False):
        if hang:
            async def read(n):
                await asyncio.sleep(3600)
            self.stdout = SimpleNamespace(read=read)
        else:
            chunks = [output[i:i + chunk_size] for i in range(0, len(output), chunk_size)]
            self.stdout = SimpleNamespace(read=AsyncMock(side_effect=chunks + [b""]))
        self.returncode = None
        self._final = returncode
        self.killed = False

    async def wait(self):
        self.returncode = self._final
        return self._final

    def kill(self):
        self.killed = True
        self._final = -9
