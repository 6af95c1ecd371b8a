"""Tests for shortcode expansion and the shortcode hook point."""

from __future__ import annotations

import pytest

from pagehooks import HookPoint, Page, Route, Shortcode, default_registry
from pagehooks.shortcodes import ShortcodeParser, parse_attributes


def test_parse_attributes() -> None:
    assert parse_attributes(' title="Hello world" size=3 flag name=\'x\'') == {
        "title": "Hello world",
        "size": "3",
        "flag": True,
        "name": "x",
    }


@pytest.mark.asyncio
async def test_self_closing_and_wrapping_shortcodes() -> None:
    shortcodes = [
        Shortcode("year", run=lambda: "2024"),
        Shortcode("box", run=lambda props, content: f'<div class="{props["kind"]}">{content}</div>'),
    ]
    parser = ShortcodeParser(shortcodes)

    html = await parser.parse('<p>{{year /}}</p>{{box kind="note"}}since {{year/}}{{/box}}')
    assert html == '<p>2024</p><div class="note">since 2024</div>'


@pytest.mark.asyncio
async def test_unknown_shortcodes_are_left_alone() -> None:
    parser = ShortcodeParser([Shortcode("known", run=lambda: "k")])
    assert await parser.parse("{{unknown /}} {{known /}}") == "{{unknown /}} k"


@pytest.mark.asyncio
async def test_mapping_output_feeds_stacks() -> None:
    async def widget(props, request):
        return {"html": f"<w>{request['slug']}</w>", "css": ".w{}", "js": "<script>w()</script>", "head": "<link>"}

    parser = ShortcodeParser([Shortcode("widget", run=widget)], values={"request": {"slug": "s"}})
    assert await parser.parse("{{widget /}}") == "<w>s</w>"
    assert [item.string for item in parser.css_stack] == [".w{}"]
    assert [item.string for item in parser.custom_js_stack] == ["<script>w()</script>"]
    assert [item.source for item in parser.head_stack] == ["shortcode.widget"]


@pytest.mark.asyncio
async def test_page_expands_shortcodes_and_rerenders_head(request_data, settings, sink) -> None:
    route = Route(
        name="cityNursingHomes",
        template=lambda: "<p>{{badge /}}</p>",
        layout=lambda template_html: f"<main>{template_html}</main>",
    )
    shortcodes = [Shortcode("badge", run=lambda: {"html": "<b>badge</b>", "css": ".b{}"})]

    page = await Page.create(
        request_data,
        settings,
        default_registry(),
        routes={"cityNursingHomes": route},
        shortcodes=shortcodes,
        diagnostics=sink,
    )
    html = await page.html()

    assert "<main><p><b>badge</b></p></main>" in html
    assert '<style data-name="css_stack">.b{}</style>' in html
    assert page.errors == []


@pytest.mark.asyncio
async def test_shortcode_failure_is_recorded(request_data, settings, sink) -> None:
    def broken():
        raise RuntimeError("broken shortcode")

    route = Route(name="cityNursingHomes", template=lambda: "{{broken /}}")
    page = await Page.create(
        request_data,
        settings,
        default_registry(),
        routes={"cityNursingHomes": route},
        shortcodes=[Shortcode("broken", run=broken)],
        diagnostics=sink,
    )
    html = await page.html()

    assert page.errors[0].hook_point == HookPoint.SHORTCODES.value
    assert page.errors[0].hook_name == "process_shortcodes"
    assert "{{broken /}}" in html
