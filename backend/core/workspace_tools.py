"""
Default tool set behind the local tool node.

Tool categories:
  - file_system: read_file, list_directory, search_files, write_file
  - cli: run_command (routed by terminalTarget)
  - browser: fetch_url

Every path is resolved against the workspace root and refused if it
escapes it. Tools return error strings instead of raising.
"""

import asyncio
import logging
import os
import shlex
from pathlib import Path
from typing import Optional

import httpx

from tools import CallableToolBackend

logger = logging.getLogger(__name__)

MAX_READ_CHARS = 50_000
MAX_LIST_ENTRIES = 200
MAX_SEARCH_HITS = 50
COMMAND_TIMEOUT = 60
BACKGROUND_STOP_TIMEOUT = 5
FETCH_TIMEOUT = 20

_SHELL_OPERATORS = ("&&", "||", ";", "|", "`", "$(", "${", ">", "<")

_READ_BLOCKED_NAMES = {
    ".env", ".env.local", ".env.production", "bridge.yaml",
    "credentials.json", "service_account.json",
}

_SKIP_DIRS = {".git", "node_modules", "__pycache__", ".venv", "venv"}


def default_workspace_root() -> Path:
    return Path(os.environ.get("BRIDGE_WORKSPACE") or os.getcwd()).resolve()


class WorkspaceTools:
    def __init__(self, root: Optional[Path] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.root = (root or default_workspace_root()).resolve()
        self._transport = transport
        self._background: list[asyncio.subprocess.Process] = []

    def _resolve(self, path: str) -> Path:
        """Resolve a path inside the workspace. Raises ValueError on traversal."""
        p = Path(path).expanduser()
        if not p.is_absolute():
            p = self.root / p
        resolved = p.resolve()
        if not resolved.is_relative_to(self.root):
            raise ValueError(f"Path {resolved} is outside the workspace {self.root}")
        return resolved

    # ── File system ──

    def read_file(self, path: str) -> str:
        """Read a text file from the workspace."""
        try:
            p = self._resolve(path)
        except ValueError as e:
            return f"Error: {e}"
        if p.name in _READ_BLOCKED_NAMES:
            return f"Error: reading '{p.name}' is blocked"
        if not p.is_file():
            return f"Error: file not found: {path}"
        content = p.read_text(encoding="utf-8", errors="replace")
        if len(content) > MAX_READ_CHARS:
            return content[:MAX_READ_CHARS] + f"\n\n[Truncated — file is {len(content)} chars]"
        return content

    def write_file(self, path: str, content: str) -> str:
        """Write (create or overwrite) a text file in the workspace."""
        try:
            p = self._resolve(path)
        except ValueError as e:
            return f"Error: {e}"
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        logger.info("Wrote %d chars to %s", len(content), p)
        return f"Wrote {len(content)} chars to {p.relative_to(self.root)}"

    def list_directory(self, path: str = ".") -> str:
        """List files and folders in a workspace directory."""
        try:
            p = self._resolve(path)
        except ValueError as e:
            return f"Error: {e}"
        if not p.is_dir():
            return f"Error: not a directory: {path}"
        entries = sorted(p.iterdir(), key=lambda e: (not e.is_dir(), e.name.lower()))
        lines = [f"{e.name}/" if e.is_dir() else e.name for e in entries[:MAX_LIST_ENTRIES]]
        if len(entries) > MAX_LIST_ENTRIES:
            lines.append(f"... and {len(entries) - MAX_LIST_ENTRIES} more")
        return "\n".join(lines) or "(empty directory)"

    def search_files(self, pattern: str, path: str = ".") -> str:
        """Search workspace text files for a substring; returns file:line matches."""
        try:
            base = self._resolve(path)
        except ValueError as e:
            return f"Error: {e}"
        hits = []
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = [d for d in dirnames if d not in _SKIP_DIRS]
            for filename in filenames:
                file_path = Path(dirpath) / filename
                try:
                    text = file_path.read_text(encoding="utf-8")
                except (UnicodeDecodeError, OSError):
                    continue
                for lineno, line in enumerate(text.splitlines(), 1):
                    if pattern in line:
                        rel = file_path.relative_to(self.root)
                        hits.append(f"{rel}:{lineno}: {line.strip()[:200]}")
                        if len(hits) >= MAX_SEARCH_HITS:
                            return "\n".join(hits) + "\n[More matches omitted]"
        return "\n".join(hits) or f"No matches for '{pattern}'"

    # ── CLI ──

    async def run_command(self, command: str, terminal_target: str = "integrated") -> str:
        """Run a command in the workspace and return its output. Shell operators are not allowed."""
        for op in _SHELL_OPERATORS:
            if op in command:
                return f"Error: shell operator '{op}' is not allowed — use separate run_command calls"
        try:
            args = shlex.split(command)
        except ValueError:
            return "Error: could not parse command"
        if not args:
            return "Error: empty command"

        if terminal_target == "background":
            proc = await asyncio.create_subprocess_exec(
                *args, cwd=str(self.root),
                stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
            self._background = [p for p in self._background if p.returncode is None]
            self._background.append(proc)
            logger.info("Started background command '%s' (pid %d)", command, proc.pid)
            return f"Started in background (pid {proc.pid})"

        proc = await asyncio.create_subprocess_exec(
            *args, cwd=str(self.root),
            stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), COMMAND_TIMEOUT)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return f"Error: command timed out after {COMMAND_TIMEOUT}s"

        output = stdout.decode(errors="replace")
        if stderr:
            output += ("\n" if output else "") + stderr.decode(errors="replace")
        if proc.returncode != 0:
            output += f"\n[exit code {proc.returncode}]"
        return output.strip() or "(no output)"

    def background_pids(self) -> list[int]:
        return [p.pid for p in self._background if p.returncode is None]

    async def stop_background(self):
        """Terminate background commands that are still running and reap them."""
        procs, self._background = self._background, []
        for proc in procs:
            try:
                if proc.returncode is None:
                    proc.terminate()
                await asyncio.wait_for(proc.wait(), BACKGROUND_STOP_TIMEOUT)
            except ProcessLookupError:
                await proc.wait()
            except asyncio.TimeoutError:
                logger.warning("Background pid %d ignored SIGTERM, killing", proc.pid)
                proc.kill()
                await proc.wait()
        if procs:
            logger.info("Reaped %d background command(s)", len(procs))

    # ── Browser ──

    async def fetch_url(self, url: str) -> str:
        """Fetch a web page over HTTP(S) and return its text."""
        if not url.startswith(("http://", "https://")):
            return "Error: only http(s) URLs are supported"
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, transport=self._transport,
                                     follow_redirects=True) as client:
            resp = await client.get(url)
        if resp.status_code >= 400:
            return f"Error: HTTP {resp.status_code} from {url}"
        return resp.text[:MAX_READ_CHARS]

    def register_all(self, backend: CallableToolBackend) -> CallableToolBackend:
        backend.register(self.read_file, permission="file_system")
        backend.register(self.list_directory, permission="file_system")
        backend.register(self.search_files, permission="file_system")
        backend.register(self.write_file, permission="file_system")
        backend.register(self.run_command, permission="cli")
        backend.register(self.fetch_url, permission="browser")
        return backend
