"""
Main entry point for running the pagehooks package as a module.
"""

import argparse
import asyncio
import builtins
import sys
from typing import List, Optional

from pagehooks.build import Build, BuildResult
from pagehooks.config import Settings, deep_merge, get_settings
from pagehooks.exceptions import ConfigurationError, DuplicateHookNameError
from pagehooks.log_manager import LogManager, log
from pagehooks.operations import get_registered_operations, register
from pagehooks.profiler import func_cprofile, func_time
from pagehooks.site import Site, load_site
from pagehooks.utils import get_version


@func_time
@func_cprofile
def _run_build(settings: Settings, site: Site) -> BuildResult:
    build = Build(
        settings,
        site.registry(),
        site.routes,
        site.all_requests,
        query=site.query,
        helpers=site.helpers,
        data=site.data,
        shortcodes=site.shortcodes,
    )
    return asyncio.run(build.run())


def _settings_for(site: Site, args: argparse.Namespace, context: str) -> Settings:
    options = deep_merge(site.settings, {"context": context, "worker": args.worker})
    if args.performance:
        options = deep_merge(options, {"debug": {"performance": True}})
    return get_settings(options, args.config)


@register("build", desc="Build every request of a site module into html files.")
def build_operation(args: argparse.Namespace) -> bool:
    site = load_site(args.site)
    settings = _settings_for(site, args, "build")
    result = _run_build(settings, site)
    log.info("Built %d pages with %d errors", len(result.pages), len(result.errors))
    return result.success


@register("hooks", desc="List the hooks that run at each hook point, in order.")
def hooks_operation(args: argparse.Namespace) -> bool:
    site = load_site(args.site)
    settings = _settings_for(site, args, "unknown")
    registry = site.registry()
    disabled = set(settings.hooks.disable)
    for point, descriptors in registry.list_hooks().items():
        print(point)
        for descriptor in descriptors:
            flag = " (disabled)" if descriptor.name in disabled else ""
            print(f"  {descriptor.priority:>4}  {descriptor.name}{flag}  {descriptor.description}")
    return True


def _build_parser() -> argparse.ArgumentParser:
    operations = get_registered_operations()
    parser = argparse.ArgumentParser(
        prog="pagehooks",
        description="Hook driven page build pipeline.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=get_version())
    parser.add_argument(
        "operate",
        choices=sorted(operations),
        help="\n".join(f"{name}: {meta.desc}" for name, meta in sorted(operations.items())),
    )
    parser.add_argument("site", help="Path to the site module")
    parser.add_argument("-c", "--config", default=None, help="TOML settings file")
    parser.add_argument("-w", "--worker", action="store_true", help="Build pages on a worker pool")
    parser.add_argument("--performance", action="store_true", help="Report hook and build timings")
    parser.add_argument("--perf-analyze", action="store_true", help="Profile the build with cProfile")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output on the console")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = _build_parser().parse_args(argv)
    log.debug("args: %s", args)
    builtins.ENABLE_CPROFILE = args.perf_analyze
    if args.verbose:
        LogManager().set_console_level("DEBUG")

    operation = get_registered_operations()[args.operate]
    try:
        ok = operation.func(args)
    except (ConfigurationError, DuplicateHookNameError) as exc:
        log.error("%s", exc.message)
        if exc.details:
            log.debug("details: %s", exc.details)
        return 1
    if not ok:
        log.error("Operation '%s' failed", args.operate)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
