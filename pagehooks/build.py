"""Build coordinator: runs many pages and aggregates their errors and timings."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from pagehooks.config import Settings
from pagehooks.context import BuildContext
from pagehooks.diagnostics import DiagnosticsSink, LoggingSink
from pagehooks.exceptions import PageHooksError
from pagehooks.hooks import HookPoint, HookRegistry, HookRunner
from pagehooks.log_manager import log
from pagehooks.page import Page, Route
from pagehooks.perf import Perf, TimingEntry


@dataclass
class BuildResult:
    """Outcome of one build batch."""

    pages: List[Page] = field(default_factory=list)
    errors: List[BaseException] = field(default_factory=list)
    timings: List[TimingEntry] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class Build:
    """Runs every request through its own :class:`Page`.

    Pages run one after another, or spread over a thread pool of
    ``settings.worker_count()`` workers when ``settings.worker`` is set. Pages only
    share ``settings`` and ``query``; ``query`` must tolerate concurrent use.
    """

    def __init__(
        self,
        settings: Settings,
        registry: HookRegistry,
        routes: Mapping[str, Route],
        all_requests: Sequence[Mapping[str, Any]],
        *,
        query: Any = None,
        helpers: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        shortcodes: Optional[Sequence[Any]] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        self.settings = settings
        self.registry = registry
        self.diagnostics = diagnostics or LoggingSink()
        self.context = BuildContext(
            settings=settings,
            query=query,
            helpers=dict(helpers or {}),
            data=dict(data or {}),
            routes=dict(routes),
            all_requests=[dict(r) for r in all_requests],
            shortcodes=list(shortcodes or []),
        )
        self.perf = Perf(self.context.timings, prefix="build.")
        self.runner = HookRunner(registry, self.context, self.perf, self.diagnostics)

    def _debug(self, msg: str, *args: Any) -> None:
        if self.settings.debug.build:
            log.info(msg, *args)
        else:
            log.debug(msg, *args)

    async def run(self) -> BuildResult:
        """Build every request, then run ``build_complete`` with all errors and timings."""

        self.perf.start("total")
        await self.runner.run(HookPoint.BOOTSTRAP)
        await self.runner.run(HookPoint.ALL_REQUESTS)

        requests = self._buildable_requests()
        self._debug("Building %d of %d requests", len(requests), len(self.context.all_requests))

        if self.settings.worker and len(requests) > 1:
            pages = await self._run_workers(requests)
        else:
            pages = await self._run_pages(requests)

        for page in pages:
            self.context.errors = [*self.context.errors, *page.errors]
            self.context.timings.extend(page.timings)
        self.perf.end("total")

        await self.runner.run(HookPoint.BUILD_COMPLETE)
        self._debug("Build finished with %d errors", len(self.context.errors))
        return BuildResult(pages=pages, errors=list(self.context.errors), timings=list(self.context.timings))

    def _buildable_requests(self) -> List[Mapping[str, Any]]:
        requests = []
        for request in self.context.all_requests:
            if request.get("route") in self.context.routes:
                requests.append(request)
                continue
            error = PageHooksError(
                f"No route '{request.get('route')}' for request '{request.get('permalink')}'",
                {"request": dict(request)},
            )
            log.error("%s", error)
            self.context.add_error(error)
        return requests

    async def _page(self, request: Mapping[str, Any]) -> Page:
        return await Page.create(
            request,
            self.settings,
            self.registry,
            routes=self.context.routes,
            all_requests=self.context.all_requests,
            query=self.context.query,
            helpers=self.context.helpers,
            data=self.context.data,
            shortcodes=self.context.shortcodes,
            diagnostics=self.diagnostics,
        )

    async def _run_pages(self, requests: Sequence[Mapping[str, Any]]) -> List[Page]:
        pages = []
        for request in requests:
            page = await self._page(request)
            await page.build()
            pages.append(page)
        return pages

    def _run_chunk(self, requests: Sequence[Mapping[str, Any]]) -> List[Page]:
        # each worker thread drives its own event loop
        return asyncio.run(self._run_pages(requests))

    async def _run_workers(self, requests: Sequence[Mapping[str, Any]]) -> List[Page]:
        workers = min(self.settings.worker_count(), len(requests))
        chunks = [list(requests[i::workers]) for i in range(workers)]
        self._debug("Running %d requests on %d workers", len(requests), workers)

        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pagehooks") as pool:
            results = await asyncio.gather(*(loop.run_in_executor(pool, self._run_chunk, c) for c in chunks))

        # restore request order from the round-robin chunks
        pages: List[Page] = [None] * len(requests)  # type: ignore[list-item]
        for offset, chunk in enumerate(results):
            for position, page in enumerate(chunk):
                pages[offset + position * workers] = page
        return pages
