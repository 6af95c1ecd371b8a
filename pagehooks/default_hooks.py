"""Built-in hooks.

Every hook here can be switched off by name through ``settings.hooks.disable``
or replaced by registering a differently named hook on the same hook point.
"""

from __future__ import annotations

import os
from pathlib import Path

from pagehooks.exceptions import error_to_dict
from pagehooks.hooks import HookDescriptor, HookPoint, HookRegistry
from pagehooks.log_manager import log
from pagehooks.perf import parse_build_perf
from pagehooks.shortcodes import ShortcodeParser
from pagehooks.stack import StackItem
from pagehooks.utils import epoch_millis, write_json, write_text

BUILD_REPORT_DIR = "___ELDER___"


async def process_shortcodes(
    shortcodes, helpers, data, settings, request, query, all_requests, route_html, head_stack, css_stack, custom_js_stack
):
    """Expands shortcodes in the route html and appends their css, js and head output to the stacks."""

    parser = ShortcodeParser(
        shortcodes=list(shortcodes),
        values={
            "helpers": helpers,
            "data": data,
            "settings": settings,
            "request": request,
            "query": query,
            "all_requests": all_requests,
        },
        head_stack=list(head_stack),
        css_stack=list(css_stack),
        custom_js_stack=list(custom_js_stack),
    )
    html = await parser.parse(route_html)
    patch = {"route_html": html} if html != route_html else {}
    for key, before in (("head_stack", head_stack), ("css_stack", css_stack), ("custom_js_stack", custom_js_stack)):
        after = getattr(parser, key)
        if len(after) > len(before):
            patch[key] = after
    return patch or None


def add_meta_charset_to_head(head_stack):
    return {
        "head_stack": [
            *head_stack,
            StackItem(source="add_meta_charset_to_head", string='<meta charset="UTF-8" />', priority=100),
        ]
    }


def add_meta_viewport_to_head(head_stack):
    return {
        "head_stack": [
            *head_stack,
            StackItem(
                source="add_meta_viewport_to_head",
                string='<meta name="viewport" content="width=device-width, initial-scale=1" />',
                priority=90,
            ),
        ]
    }


def compile_html(request, head_string, footer_string, layout_html):
    return {
        "html_string": (
            f'<!DOCTYPE html><html lang="en"><head>{head_string}</head>'
            f'<body class="{request.get("route", "")}">{layout_html}{footer_string}</body></html>'
        )
    }


def log_errors(request, errors, diagnostics):
    diagnostics.report_errors(request.get("permalink"), errors)


def write_html_file(settings, request, html_string, errors):
    """Writes the html of a request to ``{dist_dir}{permalink}/index.html`` in build mode."""

    if not settings.build:
        return None
    permalink = request.get("permalink", "/")
    target = Path(settings.dist_dir) / permalink.strip("/") / "index.html"
    try:
        write_text(target, html_string)
    except OSError as exc:
        log.error("Failed to write '%s': %s", target, exc)
        return {"errors": [*errors, exc]}
    log.debug("Wrote %s", target)
    return None


def display_request_time(timings, request, settings, diagnostics):
    """Reports how long a request took outside of builds and production."""

    if settings.build or os.environ.get("PAGEHOOKS_ENV") == "production":
        return
    page = next((t for t in reversed(timings) if t.name == "page"), None)
    if page is None:
        return
    diagnostics.report_request_time(request.get("permalink"), page.duration)
    if settings.debug.performance:
        diagnostics.report_timing_table(request.get("permalink"), sorted(timings, key=lambda t: t.duration))


def show_parsed_build_times(timings, settings, diagnostics):
    """Reports average times of the different stages of the build."""

    if settings.debug.performance:
        diagnostics.report_build_perf(parse_build_perf(timings))


def write_build_errors(errors, settings, diagnostics):
    """Writes the errors of a build to a JSON file under the root directory."""

    if not errors:
        return
    target = Path(settings.root_dir) / BUILD_REPORT_DIR / f"build-{epoch_millis()}.json"
    diagnostics.report_build_errors_written(target, len(errors))
    write_json(target, {"errors": [error_to_dict(e) for e in errors], "settings": settings.model_dump(mode="json")})


DEFAULT_HOOKS = (
    (HookPoint.SHORTCODES, "process_shortcodes", process_shortcodes, 50, None),
    (HookPoint.STACKS, "add_meta_charset_to_head", add_meta_charset_to_head, 100, 'Adds <meta charset="UTF-8" /> to the head.'),
    (
        HookPoint.STACKS,
        "add_meta_viewport_to_head",
        add_meta_viewport_to_head,
        90,
        "Adds the device-width viewport meta tag to the head.",
    ),
    (HookPoint.COMPILE_HTML, "compile_html", compile_html, 50, "Creates the html document out of the layout and stacks."),
    (HookPoint.ERROR, "log_errors", log_errors, 1, "Reports errors to the diagnostics sink."),
    (HookPoint.REQUEST_COMPLETE, "write_html_file", write_html_file, 1, None),
    (HookPoint.REQUEST_COMPLETE, "display_request_time", display_request_time, 50, None),
    (HookPoint.BUILD_COMPLETE, "show_parsed_build_times", show_parsed_build_times, 50, None),
    (HookPoint.BUILD_COMPLETE, "write_build_errors", write_build_errors, 50, None),
)


def default_descriptors():
    """Return descriptors for the built-in hooks, in registration order."""

    return [
        HookDescriptor.create(point, name, run, priority, description or run.__doc__.strip().splitlines()[0])
        for point, name, run, priority, description in DEFAULT_HOOKS
    ]


def default_registry() -> HookRegistry:
    """Return a new registry holding the built-in hooks."""
    return HookRegistry(default_descriptors())
