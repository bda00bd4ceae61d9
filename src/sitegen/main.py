"""CLI entry point for building and previewing the site.

Usage:
    python -m src.sitegen build [--minify] [--source DIR]
    python -m src.sitegen serve [--draft] [--host H] [--port P] [-l] [-o]
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
import webbrowser
from pathlib import Path
from typing import Optional, Sequence

from src.common.config import SiteSettings
from src.common.exceptions import SiteError, SiteIOError
from src.common.logging import set_level, setup_logging
from src.sitegen.preview import Debouncer, PreviewServer, PreviewSession, SourceWatcher
from src.sitegen.publisher import BuildMode, BuildPipeline

logger = setup_logging(module_name="sitegen.main")


def _flag(value: bool) -> Optional[bool]:
    """Turn a store_true flag into an override (None = keep site.yaml value)."""
    return True if value else None


def build_command(args: argparse.Namespace) -> int:
    settings = SiteSettings.load(
        args.source,
        minify=_flag(args.minify),
        strict=_flag(args.strict),
        output_dir=args.output,
    )
    result = BuildPipeline(settings, mode=BuildMode.PRODUCTION).run()
    print(
        f"\nBuilt {result.post_count} posts ({result.page_count} pages, "
        f"{result.static_count} static files) into {result.output_dir}"
    )
    for error in result.skipped:
        print(f"  skipped {error}")
    return 0


def serve_command(args: argparse.Namespace) -> int:
    overrides = dict(
        strict=_flag(args.strict),
        serve_host=args.host,
        serve_port=args.port,
        serve_livereload=_flag(args.livereload),
    )
    settings = SiteSettings.load(args.source, **overrides)

    def build(target: Path):
        # Re-read site.yaml so edits to it apply on the next rebuild
        current = SiteSettings.load(args.source, **overrides)
        pipeline = BuildPipeline(current, mode=BuildMode.PREVIEW, include_drafts=args.draft)
        return pipeline.run(target)

    debouncer = Debouncer(settings.serve.debounce_seconds)
    session = PreviewSession(build, debouncer)
    try:
        if not session.rebuild():
            logger.error("Initial build failed: %s", session.last_error)
            return 1

        address = (settings.serve.host, settings.serve.port)
        try:
            server = PreviewServer(address, session.current_dir, livereload=settings.serve.livereload)
        except OSError as e:
            raise SiteIOError(f"{address[0]}:{address[1]}", f"cannot bind preview server: {e.strerror or e}") from e
        session.on_publish(server.set_root)
        server.start()

        watcher = SourceWatcher(settings, debouncer, ignore=[session.preview_root])
        watcher.start()
        if args.open:
            webbrowser.open(server.url)

        stop = threading.Event()
        try:
            session.run(stop)
        except KeyboardInterrupt:
            logger.info("Stopping preview server")
        finally:
            watcher.stop()
            server.stop()
    finally:
        session.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitegen", description="Build and preview the blog")
    parser.add_argument(
        "--source",
        "-s",
        type=Path,
        default=Path("."),
        help="Site root containing site.yaml (default: current directory)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="One-shot production build (drafts excluded)")
    build.add_argument("--minify", action="store_true", help="Minify HTML, CSS and JS output")
    build.add_argument("--strict", action="store_true", help="Abort on the first front matter error")
    build.add_argument("--output", "-d", type=Path, help="Output directory (default from site.yaml)")
    build.set_defaults(func=build_command)

    serve = subparsers.add_parser("serve", help="Preview server with live rebuild")
    serve.add_argument("--draft", "-D", action="store_true", help="Include draft posts")
    serve.add_argument("--host", "-H", help="Bind address (default from site.yaml, 127.0.0.1)")
    serve.add_argument("--port", "-P", type=int, help="Port (default from site.yaml, 4000)")
    serve.add_argument("--livereload", "-l", action="store_true", help="Reload open pages after each rebuild")
    serve.add_argument("--open", "-o", action="store_true", help="Open the site in a browser")
    serve.add_argument("--strict", action="store_true", help="Fail rebuilds on front matter errors")
    serve.set_defaults(func=serve_command)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)

    try:
        return args.func(args)
    except SiteError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
