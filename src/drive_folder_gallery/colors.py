"""Dominant-color sampling for manifest entries."""

from __future__ import annotations

import colorsys
import io
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import requests
from PIL import Image, UnidentifiedImageError

from . import drive
from .manifest import ManifestEntry
from .status import StatusReporter

DEFAULT_WORKERS = 6
DEFAULT_SAMPLE_WIDTH = 128
SAMPLE_SIZE = (64, 64)
PALETTE_COLORS = 8
REQUEST_TIMEOUT = 30

BUCKET_ORDER = (
    "red",
    "orange",
    "yellow",
    "green",
    "cyan",
    "blue",
    "purple",
    "pink",
    "white",
    "gray",
    "black",
)

# Upper hue bound (exclusive) for each chromatic bucket; red wraps past 345.
_HUE_BUCKETS = (
    (15, "red"),
    (45, "orange"),
    (70, "yellow"),
    (165, "green"),
    (200, "cyan"),
    (255, "blue"),
    (290, "purple"),
    (345, "pink"),
    (360, "red"),
)

_RESAMPLING = getattr(Image, "Resampling", Image)
_BOX = getattr(_RESAMPLING, "BOX", Image.BILINEAR)


class ColorSampleError(RuntimeError):
    """Raised when no thumbnail for an entry could be fetched or decoded."""


@dataclass(frozen=True)
class ColorSample:
    hex: str
    hue: int
    saturation: int
    lightness: int
    bucket: str

    def apply(self, entry: ManifestEntry) -> None:
        entry.hex = self.hex
        entry.hue = self.hue
        entry.saturation = self.saturation
        entry.lightness = self.lightness
        entry.bucket = self.bucket


DEFAULT_SAMPLE = ColorSample("#808080", 0, 0, 50, "gray")


def hex_color(rgb: Sequence[int]) -> str:
    r, g, b = (max(0, min(255, int(c))) for c in rgb[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[int, int, int]:
    """Return ``(hue degrees, saturation %, lightness %)`` for an RGB triple."""

    h, lightness, s = colorsys.rgb_to_hls(r / 255, g / 255, b / 255)
    return round(h * 360) % 360, round(s * 100), round(lightness * 100)


def color_bucket(h: float, s: float, l: float) -> str:  # noqa: E741
    """Map an HSL color onto one of the names in ``BUCKET_ORDER``.

    Lightness wins over saturation, which wins over hue: very dark colors
    are ``black``, very light ones ``white`` and washed-out ones ``gray``.
    """

    if l < 15:
        return "black"
    if l > 88:
        return "white"
    if s < 15:
        return "gray"
    hue = h % 360
    for upper, name in _HUE_BUCKETS:
        if hue < upper:
            return name
    return "red"


def sample_from_rgb(rgb: Sequence[int]) -> ColorSample:
    r, g, b = (int(c) for c in rgb[:3])
    h, s, l = rgb_to_hsl(r, g, b)  # noqa: E741
    return ColorSample(hex_color((r, g, b)), h, s, l, color_bucket(h, s, l))


def dominant_color(image: Image.Image) -> tuple[int, int, int]:
    """Return the most common color of ``image`` after coarse quantisation."""

    small = image.convert("RGB").resize(SAMPLE_SIZE, _BOX)
    quantized = small.quantize(colors=PALETTE_COLORS, method=Image.Quantize.MEDIANCUT)
    palette = quantized.getpalette() or []
    counts = quantized.getcolors() or []
    if not counts or not palette:
        return small.getpixel((0, 0))[:3]
    _count, index = max(counts)
    r, g, b = palette[index * 3 : index * 3 + 3]
    return r, g, b


def _thumbnail_sources(entry: ManifestEntry, width: int) -> list[str]:
    return [
        drive.thumbnail_url(entry.id, entry.rk, width),
        drive.cdn_url(entry.id, width),
    ]


def fetch_thumbnail(
    session: requests.Session, entry: ManifestEntry, width: int = DEFAULT_SAMPLE_WIDTH
) -> Image.Image:
    """Download a small rendition of ``entry`` and return it decoded."""

    errors = []
    for url in _thumbnail_sources(entry, width):
        try:
            response = session.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            errors.append(f"{url}: {exc}")
            continue
        if response.status_code != 200:
            errors.append(f"{url}: HTTP {response.status_code}")
            continue
        try:
            with Image.open(io.BytesIO(response.content)) as img:
                img.load()
                return img.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            errors.append(f"{url}: {exc}")
    raise ColorSampleError(f"No thumbnail for {entry.id}: {'; '.join(errors)}")


def sample_entry(
    session: requests.Session, entry: ManifestEntry, width: int = DEFAULT_SAMPLE_WIDTH
) -> ColorSample:
    image = fetch_thumbnail(session, entry, width)
    return sample_from_rgb(dominant_color(image))


def sample_colors(
    entries: Sequence[ManifestEntry],
    *,
    workers: int = DEFAULT_WORKERS,
    width: int = DEFAULT_SAMPLE_WIDTH,
    session: requests.Session | None = None,
    reporter: StatusReporter | None = None,
) -> list[ColorSample | None]:
    """Sample every image entry and store the result on it.

    Returns one slot per entry, in input order. Slots for entries that are
    not images stay ``None``; failed samples hold ``DEFAULT_SAMPLE``.
    """

    if workers < 1:
        raise ValueError("workers must be at least 1")

    results: list[ColorSample | None] = [None] * len(entries)
    pending = [i for i, entry in enumerate(entries) if drive.is_image_name(entry.name)]
    if not pending:
        return results

    session = session or requests.Session()
    if reporter is not None:
        reporter.set_total(len(pending))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(sample_entry, session, entries[i], width): i for i in pending
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                sample = future.result()
            except Exception as exc:  # noqa: BLE001
                if reporter is not None:
                    reporter.warn(f"Color sampling failed for {entries[index].id}: {exc}")
                sample = DEFAULT_SAMPLE
            results[index] = sample
            sample.apply(entries[index])
            if reporter is not None:
                reporter.advance()

    return results
