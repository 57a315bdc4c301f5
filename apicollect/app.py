"""Collection run orchestration.

Steps run strictly in order, one at a time:
content -> discovery -> fetch (+ kubelet reconciliation) -> persist.

Nothing is written to the result directory until every path has been
fetched, so a failed run never leaves a partial tree behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from apicollect.collector.client import ClusterClient, KubernetesClusterClient
from apicollect.collector.fetcher import Fetcher
from apicollect.content.loader import ContentLoader
from apicollect.content.profile import ProfileResolver
from apicollect.errors import CollectorError, ContentError
from apicollect.models.config import CollectorConfig
from apicollect.models.resources import Discovery, FetchResult
from apicollect.observability.logging import Logger, resolve_logger
from apicollect.storage import save_resources, save_warnings_if_any


@dataclass
class CollectionReport:
    """What a finished run discovered, fetched and wrote."""

    discovery: Discovery
    result: FetchResult
    written: list[str] = field(default_factory=list)
    warnings_written: bool = False


class ResourceCollector:
    """Runs one collection for a profile against one cluster."""

    def __init__(
        self,
        config: CollectorConfig,
        client: ClusterClient,
        logger: Logger | None = None,
    ) -> None:
        self.config = config
        self._client = client
        self._log = resolve_logger(logger, "app")

    async def load_content(self) -> ContentLoader:
        content = self.config.content
        if not content.content_path:
            raise ContentError("no content file given")
        loader = ContentLoader(
            timeout=content.timeout_seconds,
            poll_interval=content.poll_interval,
            logger=self._log,
        )
        await loader.load_source(content.content_path)
        if content.tailoring_path:
            await loader.load_tailoring(content.tailoring_path)
        return loader

    async def discover(self, loader: ContentLoader) -> Discovery:
        if loader.data_stream is None:
            raise ContentError("no benchmark content loaded")
        resolver = ProfileResolver(
            self._client,
            loader.data_stream,
            tailoring=loader.tailoring,
            logger=self._log,
        )
        return await resolver.figure_resources(self.config.content.profile)

    async def run(self) -> CollectionReport:
        # --- 1. Content --------------------------------------------------
        loader = await self.load_content()

        # --- 2. Discovery ------------------------------------------------
        discovery = await self.discover(loader)
        self._log.info("resources_discovered", profile=self.config.content.profile, count=len(discovery.paths))

        # --- 3. Fetch + kubelet reconciliation ---------------------------
        fetcher = Fetcher(self._client, logger=self._log)
        result = await fetcher.fetch_resources(discovery.paths)
        self._log.info("resources_fetched", count=len(result.found), warnings=len(result.warnings))

        # --- 4. Persist --------------------------------------------------
        report = CollectionReport(discovery=discovery, result=result)
        output = self.config.output
        if output.result_dir:
            report.written = save_resources(output.result_dir, result.found, logger=self._log)
        warnings_file = output.warnings_path()
        if warnings_file:
            report.warnings_written = save_warnings_if_any(result.warnings, warnings_file, logger=self._log)
        elif result.warnings:
            self._log.warning("warnings_not_persisted", count=len(result.warnings))
        return report


async def run_collection(config: CollectorConfig, client: ClusterClient | None = None) -> CollectionReport:
    """Run a collection, building (and closing) a cluster client when none is given."""
    log = resolve_logger(None, "app")
    owned = client is None
    if client is None:
        client = await KubernetesClusterClient.from_environment()
    try:
        return await ResourceCollector(config, client).run()
    except CollectorError as exc:
        log.error("collection_failed", error=str(exc), error_type=type(exc).__name__)
        raise
    finally:
        if owned:
            await client.close()
