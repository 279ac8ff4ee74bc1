"""JSON-lines lease event source.

Follows a file in which a DHCP server hook (or sniffer) appends one lease
event per line, in the form accepted by ``parse_lease_event``. Each complete
line is handed to the engine before the next one is read, so events are
processed strictly in file order.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import IO

from dhcp_lease_sync.leases.engine import LeaseEngine
from dhcp_lease_sync.leases.record import InvalidLeaseEvent, parse_lease_event

logger = logging.getLogger(__name__)


class JsonLinesLeaseSource:
    """Tails a JSON-lines file and feeds lease events to a ``LeaseEngine``.

    Parameters
    ----------
    path:
        File to follow. It may not exist yet; it is opened once it appears.
    engine:
        Receives every well-formed event.
    poll_interval:
        Seconds to wait for new data when the file is idle.
    from_start:
        Replay the events already in the file on first open. When False,
        reading starts at the current end of file.
    """

    def __init__(
        self,
        path: Path,
        engine: LeaseEngine,
        poll_interval: float = 1.0,
        from_start: bool = True,
    ) -> None:
        self._path = Path(path)
        self._engine = engine
        self._poll_interval = poll_interval
        self._from_start = from_start
        self._fh: IO[bytes] | None = None
        self._partial = b""
        self.processed = 0
        self.rejected = 0

    def _open(self) -> IO[bytes] | None:
        if self._fh is not None:
            return self._fh
        if not self._path.exists():
            return None
        # bytes mode; process_line decodes each line on its own
        self._fh = open(self._path, "rb")
        if not self._from_start:
            self._fh.seek(0, 2)
        # Later reopens (after truncation/rotation) always read the new file whole
        self._from_start = True
        logger.info("Following lease events in %s", self._path)
        return self._fh

    def _check_truncated(self, fh: IO[bytes]) -> None:
        try:
            size = self._path.stat().st_size
        except FileNotFoundError:
            size = 0
        if size < fh.tell():
            logger.warning("Lease event file %s truncated, reopening", self._path)
            self.close()

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        self._partial = b""

    async def process_line(self, line: str | bytes) -> bool:
        """Parse one line and feed it to the engine. Returns False if rejected."""
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as exc:
                self.rejected += 1
                logger.warning("Skipping undecodable lease event %r: %s", line[:200], exc)
                return False
        text = line.strip()
        if not text:
            return True
        try:
            event = parse_lease_event(json.loads(text))
        except (json.JSONDecodeError, InvalidLeaseEvent) as exc:
            self.rejected += 1
            logger.warning("Skipping malformed lease event %r: %s", text[:200], exc)
            return False

        await self._engine.handle_event(event)
        self.processed += 1
        return True

    async def read_available(self) -> int:
        """Process every complete line currently in the file. Returns the count."""
        fh = self._open()
        if fh is None:
            return 0
        self._check_truncated(fh)
        fh = self._open()
        if fh is None:
            return 0

        count = 0
        while True:
            chunk = fh.readline()
            if not chunk:
                break
            if not chunk.endswith(b"\n"):
                # writer is mid-line; keep it for the next read
                self._partial += chunk
                break
            line = self._partial + chunk
            self._partial = b""
            await self.process_line(line)
            count += 1
        return count

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Follow the file until the shutdown event is set."""
        logger.info(
            "Lease event source started: path=%s, poll_interval=%.1fs",
            self._path,
            self._poll_interval,
        )
        try:
            while not shutdown_event.is_set():
                try:
                    count = await self.read_available()
                except OSError:
                    logger.exception("Reading lease events from %s failed", self._path)
                    self.close()
                    count = 0

                if count:
                    continue
                try:
                    await asyncio.wait_for(
                        shutdown_event.wait(),
                        timeout=self._poll_interval,
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self.close()
            logger.info(
                "Lease event source stopped: %d processed, %d rejected",
                self.processed,
                self.rejected,
            )
