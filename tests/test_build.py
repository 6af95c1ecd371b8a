"""Tests for the build coordinator."""

from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from pagehooks import Build, HookPoint, Route, default_registry
from pagehooks.diagnostics import NullSink


class RecordingSink(NullSink):
    """Sink that keeps what it was given."""

    def __init__(self):
        self.build_perf: List[Dict[str, Any]] = []
        self.written: List[Any] = []

    def report_build_perf(self, summary):
        self.build_perf.append(summary)

    def report_build_errors_written(self, path, count):
        self.written.append((path, count))


def _requests(count: int) -> List[Dict[str, Any]]:
    return [{"route": "post", "slug": f"post-{i}", "permalink": f"/posts/post-{i}/"} for i in range(count)]


@pytest.fixture
def post_routes() -> Dict[str, Route]:
    return {
        "post": Route(
            name="post",
            template=lambda request: f"<article>{request['slug']}</article>",
            layout=lambda template_html: f"<main>{template_html}</main>",
        )
    }


@pytest.mark.asyncio
async def test_build_writes_every_page(settings, post_routes, sink, tmp_path) -> None:
    result = await Build(settings, default_registry(), post_routes, _requests(3), diagnostics=sink).run()

    assert result.success
    assert [p.permalink for p in result.pages] == ["/posts/post-0/", "/posts/post-1/", "/posts/post-2/"]
    for i, page in enumerate(result.pages):
        written = (tmp_path / "public" / "posts" / f"post-{i}" / "index.html").read_text(encoding="utf-8")
        assert written == page.context.html_string
        assert f"<main><article>post-{i}</article></main>" in written
    assert not (tmp_path / "___ELDER___").exists()


@pytest.mark.asyncio
async def test_build_aggregates_errors_and_writes_report(settings, post_routes, sink, tmp_path) -> None:
    registry = default_registry()
    completed: List[Dict[str, Any]] = []

    def fail_on_second(request):
        if request["slug"] == "post-1":
            raise RuntimeError("bad data")

    def capture(timings, errors):
        completed.append({"timings": timings, "errors": errors})

    registry.register_hook(HookPoint.DATA, "fail_on_second", fail_on_second)
    registry.register_hook(HookPoint.BUILD_COMPLETE, "capture", capture, priority=1)

    requests = _requests(3) + [{"route": "missing", "permalink": "/missing/"}]
    result = await Build(settings, registry, post_routes, requests, diagnostics=sink).run()

    assert not result.success
    assert len(result.pages) == 3
    assert len(result.errors) == 2
    assert len(completed) == 1
    assert len(completed[0]["errors"]) == 2
    assert any(t.name == "page" for t in completed[0]["timings"])

    (report,) = list((tmp_path / "___ELDER___").glob("build-*.json"))
    payload = json.loads(report.read_text(encoding="utf-8"))
    assert set(payload) == {"errors", "settings"}
    assert len(payload["errors"]) == 2
    assert payload["settings"]["root_dir"] == str(tmp_path)
    assert any(e["details"].get("hook_name") == "fail_on_second" for e in payload["errors"])


@pytest.mark.asyncio
async def test_build_complete_runs_once_even_with_no_requests(settings, post_routes, sink) -> None:
    registry = default_registry()
    calls: List[int] = []
    registry.register_hook(HookPoint.BUILD_COMPLETE, "count", lambda errors: calls.append(len(errors)))

    result = await Build(settings, registry, post_routes, [], diagnostics=sink).run()
    assert calls == [0]
    assert result.pages == []


@pytest.mark.asyncio
async def test_bootstrap_and_all_requests_hooks(settings, post_routes, sink) -> None:
    registry = default_registry()

    def add_helper(helpers):
        return {"helpers": {**helpers, "shout": str.upper}}

    def only_first(all_requests):
        return {"all_requests": all_requests[:1]}

    def use_helper(helpers, data, request):
        return {"data": {**data, "title": helpers["shout"](request["slug"])}}

    registry.register_hook(HookPoint.BOOTSTRAP, "add_helper", add_helper)
    registry.register_hook(HookPoint.ALL_REQUESTS, "only_first", only_first)
    registry.register_hook(HookPoint.DATA, "use_helper", use_helper)

    result = await Build(settings, registry, post_routes, _requests(3), diagnostics=sink).run()
    (page,) = result.pages
    assert page.context.data["title"] == "POST-0"


@pytest.mark.asyncio
async def test_worker_pool_keeps_request_order(settings, post_routes, sink) -> None:
    settings = settings.model_copy(update={"worker": True, "number_of_workers": 3})
    result = await Build(settings, default_registry(), post_routes, _requests(7), diagnostics=sink).run()

    assert result.success
    assert [p.permalink for p in result.pages] == [f"/posts/post-{i}/" for i in range(7)]
    assert all(p.state == "done" for p in result.pages)


@pytest.mark.asyncio
async def test_performance_debug_reports_build_perf(settings, post_routes) -> None:
    settings = settings.model_copy(
        update={"debug": settings.debug.model_copy(update={"performance": True})}
    )
    recording = RecordingSink()
    await Build(settings, default_registry(), post_routes, _requests(2), diagnostics=recording).run()

    (summary,) = recording.build_perf
    assert summary["page"]["count"] == 2
    assert "hook.compile_html.compile_html" in summary


@pytest.mark.asyncio
async def test_pages_share_query_but_not_context(settings, post_routes, sink) -> None:
    registry = default_registry()
    query = object()
    seen = []

    def check(query, data):
        seen.append(query)
        return {"data": {**data, "touched": True}}

    registry.register_hook(HookPoint.REQUEST, "check", check)
    result = await Build(settings, registry, post_routes, _requests(2), query=query, data={}, diagnostics=sink).run()

    assert seen == [query, query]
    assert result.pages[0].context.data is not result.pages[1].context.data
