"""Enumerate the files of a public Drive folder through its embedded view."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout
from playwright.sync_api import sync_playwright

from . import colors, drive
from .manifest import MANIFEST_NAME, ManifestBuilder, ManifestEntry, sort_entries, write_manifest
from .status import StatusReporter
from .utils import Settings

TILE_SELECTOR = 'a[href*="/file/d/"], img[src*="thumbnail?id="]'
TILE_WAIT_MS = 60_000
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
EXTRA_HEADERS = {"Accept-Language": "en-US,en;q=0.9"}

DEBUG_HTML = "debug.html"
DEBUG_SCREENSHOT = "debug-screenshot.png"

COUNT_TILES_JS = f"() => document.querySelectorAll({TILE_SELECTOR!r}).length"
SCROLL_JS = "() => window.scrollTo(0, document.body.scrollHeight)"

# Only raw attributes leave the page; parsing happens in Python.
EXTRACT_JS = """
() => ({
  anchors: Array.from(document.querySelectorAll('a[href*="/file/d/"]')).map(a => ({
    href: a.href || a.getAttribute('href') || '',
    title: a.getAttribute('title') || '',
    aria: a.getAttribute('aria-label') || '',
    text: (a.textContent || '').trim(),
  })),
  images: Array.from(document.querySelectorAll('img[src*="thumbnail?id="]')).map(img => ({
    src: img.src || img.getAttribute('src') || '',
    alt: img.getAttribute('alt') || '',
  })),
})
"""


def wait_for_stable_count(
    count: Callable[[], int],
    scroll: Callable[[], None],
    *,
    max_rounds: int = 80,
    pause: float = 0.9,
    stable_rounds: int = 4,
    sleep: Callable[[float], None] | None = None,
    on_count: Callable[[int], None] | None = None,
) -> int:
    """Scroll until ``count()`` stops changing and return the last count.

    Stops after ``stable_rounds`` consecutive rounds report the same count
    or after ``max_rounds`` scrolls, whichever comes first.
    """

    sleep = sleep or time.sleep
    stable = 0
    last = 0
    for _ in range(max_rounds):
        scroll()
        sleep(pause)
        current = count()
        if on_count is not None:
            on_count(current)
        if current == last:
            stable += 1
            if stable >= stable_rounds:
                break
        else:
            stable = 0
            last = current
    return last


def _anchor_name(anchor: dict) -> str:
    for key in ("title", "aria", "text"):
        value = (anchor.get(key) or "").strip()
        if value:
            return value
    return ""


def collect_items(anchors: Iterable[dict], images: Iterable[dict]) -> list[ManifestEntry]:
    """Turn raw anchor and thumbnail attributes into unique manifest entries.

    Anchors are authoritative for names; thumbnails only add unseen ids or
    fill in a name that is still empty.
    """

    builder = ManifestBuilder()
    for anchor in anchors:
        href = anchor.get("href") or ""
        file_id = drive.file_id_from_href(href)
        if not file_id:
            continue
        builder.add(file_id, _anchor_name(anchor), drive.resource_key_from_url(href))
    for image in images:
        src = image.get("src") or ""
        file_id = drive.file_id_from_thumbnail(src)
        if not file_id:
            continue
        builder.add(
            file_id,
            (image.get("alt") or "").strip(),
            drive.resource_key_from_url(src),
            override=False,
        )
    return builder.entries()


def write_debug_artifacts(page, output_dir: Path) -> None:
    (output_dir / DEBUG_HTML).write_text(page.content(), encoding="utf-8")
    page.screenshot(path=str(output_dir / DEBUG_SCREENSHOT), full_page=True)


def scrape_folder(
    folder_id: str,
    settings: Settings,
    reporter: StatusReporter,
    *,
    debug: bool = True,
) -> list[ManifestEntry]:
    """Load the embedded view of ``folder_id`` and return its files, unsorted."""

    url = drive.embed_url(folder_id)
    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=settings.headless, args=BROWSER_ARGS)
        try:
            page = browser.new_page()
            page.set_default_navigation_timeout(settings.timeout * 1000)
            page.set_extra_http_headers(EXTRA_HEADERS)

            reporter.log_status("Opening", url)
            try:
                page.goto(url, wait_until="networkidle")
            except PlaywrightTimeout:
                reporter.warn("Navigation timed out; continuing with what loaded.")
            except PlaywrightError as exc:
                reporter.warn(f"Navigation failed ({exc}); continuing with what loaded.")

            try:
                page.wait_for_selector(TILE_SELECTOR, timeout=TILE_WAIT_MS)
            except PlaywrightTimeout:
                reporter.warn("No tiles found in the embedded view.")

            reporter.log("Scrolling to load all tiles...")
            tiles = wait_for_stable_count(
                lambda: page.evaluate(COUNT_TILES_JS),
                lambda: page.evaluate(SCROLL_JS),
                max_rounds=settings.max_scrolls,
                pause=settings.scroll_pause,
                stable_rounds=settings.stable_rounds,
                on_count=reporter.set_count,
            )
            reporter.log_status("Tiles loaded:", str(tiles))

            raw = page.evaluate(EXTRACT_JS)
            items = collect_items(raw.get("anchors", []), raw.get("images", []))

            if debug:
                try:
                    write_debug_artifacts(page, output_dir)
                except PlaywrightError as exc:
                    reporter.warn(f"Could not write debug artifacts: {exc}")
        finally:
            browser.close()

    return items


def scrape(
    folder: str,
    settings: Settings | None = None,
    *,
    sample_colors: bool = False,
    debug: bool = True,
    reporter: StatusReporter | None = None,
) -> list[ManifestEntry]:
    """Scrape ``folder`` (URL or id) and write ``files.json`` to the output dir."""

    settings = settings or Settings()
    folder_id = drive.normalize_folder_id(folder)
    if not folder_id:
        raise ValueError("A folder URL or id is required")

    own_reporter = reporter is None
    reporter = reporter or StatusReporter(description="Tiles", unit="tile")
    try:
        items = sort_entries(scrape_folder(folder_id, settings, reporter, debug=debug))
        reporter.close()

        if sample_colors and items:
            reporter.log("Sampling thumbnail colors...")
            with StatusReporter(description="Colors", unit="img") as color_progress:
                colors.sample_colors(
                    items,
                    workers=settings.workers,
                    width=settings.sample_width,
                    reporter=color_progress,
                )

        manifest_path = Path(settings.output_dir) / MANIFEST_NAME
        count = write_manifest(manifest_path, items)
        reporter.log(
            f"Wrote {MANIFEST_NAME} with {count} items from {drive.embed_url(folder_id)}"
        )
    finally:
        if own_reporter:
            reporter.close()
    return items
