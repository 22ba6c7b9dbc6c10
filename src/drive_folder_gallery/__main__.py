"""Command-line interface for Drive Folder Gallery.

``drive-gallery FOLDER`` scrapes a public Google Drive folder (URL or id)
and writes ``files.json``. The ``colors`` subcommand samples dominant
colors into an existing manifest, ``render`` writes the static gallery
pages and ``bootstrap`` prepares a virtual environment with Chromium.

The ``-y/--yes`` flag can be used to automatically answer ``yes`` to any
interactive prompts.
"""

import argparse
import os
import sys
from typing import List, Optional

from . import bootstrap, colors, gallery, scraper
from .manifest import MANIFEST_NAME, dedupe, load_manifest, write_manifest
from .status import StatusReporter
from .utils import ASSUME_YES_ENV, SETTINGS_FILE, load_settings

COMMANDS = ("scrape", "colors", "render", "bootstrap")
MISSING_FOLDER = "Provide the public folder URL or raw folder ID as the first argument."


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-gallery",
        description="Scrape a public Google Drive folder into an image gallery",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Automatically answer yes to confirmation prompts.",
    )
    parser.add_argument(
        "--config",
        default=SETTINGS_FILE,
        help="Path to a key=value settings file",
    )

    sub = parser.add_subparsers(dest="command")
    scrape = sub.add_parser(
        "scrape",
        help="Scrape a folder and write files.json (default)",
    )
    scrape.add_argument("folder", nargs="?", help="Public folder URL or folder id")
    scrape.add_argument("--out", help="Directory for files.json and debug artifacts")
    scrape.add_argument(
        "--colors",
        action="store_true",
        help="Sample each image's dominant color into the manifest",
    )
    scrape.add_argument(
        "--no-debug",
        dest="debug",
        action="store_false",
        help="Skip writing debug.html and debug-screenshot.png",
    )
    scrape.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window while scraping",
    )

    col = sub.add_parser(
        "colors",
        help="Sample dominant colors for an existing manifest",
    )
    col.add_argument("--manifest", default=MANIFEST_NAME, help="Path to files.json")
    col.add_argument("--workers", type=positive_int, help="Number of parallel fetches")

    render = sub.add_parser(
        "render",
        help="Write the static gallery pages for a manifest",
    )
    render.add_argument("--manifest", default=MANIFEST_NAME, help="Path to files.json")
    render.add_argument("--site", default="site", help="Output directory")
    render.add_argument(
        "--layout",
        dest="layouts",
        action="append",
        choices=[*gallery.LAYOUTS, "all"],
        help="Layout to write (repeatable; 'all' writes every layout)",
    )
    render.add_argument(
        "--index",
        choices=gallery.LAYOUTS,
        help="Layout used for index.html (defaults to the first layout)",
    )

    sub.add_parser(
        "bootstrap",
        help="Create a virtual environment, install requirements and Chromium",
    )
    return parser


def _with_default_command(argv: List[str]) -> List[str]:
    """Insert ``scrape`` when the first positional argument is not a command."""

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--config":
            i += 2
            continue
        if arg.startswith("-"):
            i += 1
            continue
        if arg not in COMMANDS:
            return [*argv[:i], "scrape", *argv[i:]]
        break
    return argv


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]
    return build_parser().parse_args(_with_default_command(list(argv)))


def _layouts(selected: Optional[List[str]]) -> List[str]:
    if not selected or "all" in selected:
        return list(gallery.LAYOUTS)
    return selected


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.yes:
        os.environ[ASSUME_YES_ENV] = "1"

    if args.command == "bootstrap":
        bootstrap.main()
        return

    settings = load_settings(args.config)

    if args.command == "colors":
        settings = settings.merged(workers=args.workers)
        entries = dedupe(load_manifest(args.manifest))
        if not entries:
            print(f"No entries found in {args.manifest}.")
            return
        with StatusReporter(description="Colors", unit="img") as progress:
            results = colors.sample_colors(
                entries,
                workers=settings.workers,
                width=settings.sample_width,
                reporter=progress,
            )
        write_manifest(args.manifest, entries)
        sampled = sum(1 for r in results if r is not None)
        print(f"Sampled colors for {sampled} images.")
    elif args.command == "render":
        layouts = _layouts(args.layouts)
        total = gallery.render_site(
            manifest_path=args.manifest,
            site_root=args.site,
            layouts=layouts,
            index_layout=args.index,
        )
        if total:
            print(f"Rendered {', '.join(layouts)} into {args.site} with {total} items.")
        else:
            print(f"Rendered {args.site} without a manifest; pages will show a status message.")
    else:
        folder = getattr(args, "folder", None)
        if not folder or not folder.strip():
            print(MISSING_FOLDER, file=sys.stderr)
            sys.exit(1)
        settings = settings.merged(
            output_dir=args.out,
            headless=False if args.headful else None,
        )
        scraper.scrape(
            folder,
            settings,
            sample_colors=args.colors,
            debug=args.debug,
        )


if __name__ == "__main__":
    main()
