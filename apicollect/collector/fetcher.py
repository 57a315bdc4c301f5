"""Sequential fetch of every discovered ResourcePath.

Error policy per path:

- NotFound, Forbidden, NoKindMatch: recorded as a warning and the run goes
  on.  NotFound additionally stores ``# kube-api-error=NotFound`` under the
  dump path so the scanner can tell a missing object from an unfetched one.
- A filter emitting several values: warning, first value kept.
- Anything else aborts the whole run with FetchError / FilterError.
"""

from __future__ import annotations

from collections.abc import Iterable

from apicollect.collector.client import ClusterClient, is_forbidden, is_not_found, reason_for_error
from apicollect.collector.filter import apply_filter
from apicollect.collector.streamers import StreamerDispatcher, get_streamer
from apicollect.errors import FetchError, FilterError, MoreThanOneResultError, NoKindMatchError
from apicollect.models.resources import NOT_FOUND_MARKER_PREFIX, FetchResult, ResourcePath
from apicollect.observability.logging import Logger, resolve_logger
from apicollect.reconcile import reconcile_kubelet_configs


def _is_soft_error(exc: Exception) -> bool:
    return isinstance(exc, NoKindMatchError) or is_forbidden(exc) or is_not_found(exc)


def _describe(exc: Exception) -> str:
    status = getattr(exc, "status", None)
    if status is not None:
        return f"{reason_for_error(exc)} ({status})"
    return str(exc)


class Fetcher:
    """Fetches ResourcePaths one at a time through a ClusterClient."""

    def __init__(
        self,
        client: ClusterClient,
        dispatcher: StreamerDispatcher = get_streamer,
        logger: Logger | None = None,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher
        self._log = resolve_logger(logger, "collector.fetcher")

    async def fetch(self, paths: Iterable[ResourcePath]) -> FetchResult:
        """Fetch and filter every path.  Kubelet configs are not reconciled here."""
        result = FetchResult()
        for rpath in paths:
            await self._fetch_one(rpath, result)
        return result

    async def fetch_resources(self, paths: Iterable[ResourcePath]) -> FetchResult:
        """Fetch every path, then fold per-node kubelet configs into per-role ones."""
        result = await self.fetch(paths)
        found, warnings = reconcile_kubelet_configs(result.found, result.warnings, logger=self._log)
        return FetchResult(found=found, warnings=warnings)

    async def _fetch_one(self, rpath: ResourcePath, result: FetchResult) -> None:
        uri = rpath.obj_path
        self._log.info("fetching_uri", uri=uri)
        streamer = self._dispatcher(uri)
        try:
            body = await streamer.stream(self._client)
        except FetchError:
            raise
        except Exception as exc:
            if not _is_soft_error(exc):
                self._log.error("fetch_failed", uri=uri, error=_describe(exc))
                raise FetchError(f"streaming URIs failed: {uri}: {_describe(exc)}") from exc
            self._log.debug("fetch_non_fatal_error", uri=uri, error=_describe(exc))
            result.warnings.append(f"could not fetch {uri}: {_describe(exc)}")
            if is_not_found(exc):
                result.found[rpath.dump_path] = (NOT_FOUND_MARKER_PREFIX + reason_for_error(exc)).encode("utf-8")
            return

        if not body:
            self._log.debug("empty_response_body", uri=uri)
            return

        if not rpath.filter:
            result.found[rpath.dump_path] = body
            return

        self._log.debug("applying_filter", uri=uri, filter=rpath.filter)
        try:
            result.found[rpath.dump_path] = apply_filter(body, rpath.filter)
        except MoreThanOneResultError as exc:
            result.warnings.append(str(exc))
            result.found[rpath.dump_path] = exc.first
        except FilterError as exc:
            self._log.error("filter_failed", uri=uri, filter=rpath.filter, error=str(exc))
            raise
