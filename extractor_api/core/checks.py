"""External dependency checks.

Shared by the ``/api/check`` endpoint and the ``/health`` component report.
"""

import asyncio
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class CheckResult:
    """Result of a component availability check.

    Attributes:
        name: Component name (e.g., "ytdlp")
        available: Whether the component is available and functional
        version: Version string if available
        error: Error message if check failed
    """

    name: str
    available: bool
    version: Optional[str] = None
    error: Optional[str] = None


async def _run_version_command(name: str, command: List[str], timeout: float) -> CheckResult:
    """Run ``<binary> --version`` style command and capture its first line."""
    proc = None
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)

        if proc.returncode == 0:
            lines = stdout.decode(errors="replace").strip().splitlines()
            return CheckResult(name=name, available=True, version=lines[0] if lines else "unknown")

        return CheckResult(
            name=name,
            available=False,
            error=f"{command[0]} returned non-zero exit code",
        )
    except asyncio.TimeoutError:
        if proc:
            proc.kill()
            await proc.wait()
        return CheckResult(name=name, available=False, error=f"{command[0]} check timed out")
    except FileNotFoundError:
        return CheckResult(name=name, available=False, error=f"{command[0]} not found")
    except Exception as e:
        return CheckResult(name=name, available=False, error=str(e))


async def check_ytdlp(binary: str = "yt-dlp", timeout: float = 5.0) -> CheckResult:
    """Check yt-dlp availability and version.

    Args:
        binary: yt-dlp executable name or path.
        timeout: Maximum time to wait for the check in seconds.

    Returns:
        CheckResult with availability status and version if available.
    """
    return await _run_version_command("ytdlp", [binary, "--version"], timeout)
