"""Benchmark and tailoring content loading.

The content files are written by a separate extraction step that may still
be running when the collector starts, so loading first waits for the file to
exist and be non-empty.  The wait is an ordinary coroutine: it raises
``ContentTimeoutError`` at the deadline and honours task cancellation.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from lxml import etree

from apicollect.errors import ContentParseError, ContentTimeoutError
from apicollect.models.config import DEFAULT_CONTENT_TIMEOUT, DEFAULT_POLL_INTERVAL
from apicollect.observability.logging import Logger, resolve_logger

# Data streams for a full platform run to tens of megabytes.
_PARSER_OPTIONS = {"resolve_entities": False, "no_network": True, "huge_tree": True}


def _non_empty(path: Path) -> bool:
    try:
        return path.stat().st_size > 0
    except FileNotFoundError:
        return False


async def wait_for_content(
    path: str,
    timeout: float = DEFAULT_CONTENT_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    logger: Logger | None = None,
) -> bytes:
    """Return the bytes of *path* once it exists and is non-empty.

    Errors other than a missing file (permissions, a directory in the way)
    are raised immediately rather than polled through.
    """
    log = resolve_logger(logger, "content.loader")
    target = Path(os.path.normpath(path))
    try:
        async with asyncio.timeout(timeout):
            while not _non_empty(target):
                await asyncio.sleep(poll_interval)
    except TimeoutError as exc:
        log.error("content_wait_timeout", path=str(target), timeout=timeout)
        raise ContentTimeoutError(str(target), timeout) from exc

    log.info("content_file_found", path=str(target))
    return target.read_bytes()


def parse_content(data: bytes) -> etree._Element:
    """Parse an XCCDF data stream or tailoring document."""
    parser = etree.XMLParser(**_PARSER_OPTIONS)
    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        raise ContentParseError(f"malformed content: {exc}") from exc


class ContentLoader:
    """Holds the parsed benchmark and (optional) tailoring documents."""

    def __init__(
        self,
        timeout: float = DEFAULT_CONTENT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        logger: Logger | None = None,
    ) -> None:
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._log = resolve_logger(logger, "content.loader")
        self.data_stream: etree._Element | None = None
        self.tailoring: etree._Element | None = None

    async def load_source(self, path: str) -> etree._Element:
        self.data_stream = await self._load(path)
        return self.data_stream

    async def load_tailoring(self, path: str) -> etree._Element:
        self.tailoring = await self._load(path)
        return self.tailoring

    async def _load(self, path: str) -> etree._Element:
        data = await wait_for_content(path, self._timeout, self._poll_interval, logger=self._log)
        try:
            return parse_content(data)
        except ContentParseError:
            self._log.error("content_parse_failed", path=path)
            raise
