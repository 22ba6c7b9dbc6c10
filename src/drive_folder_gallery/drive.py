"""Identifiers and URL templates for public Google Drive folders."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, quote, urlparse

DRIVE_HOST = "https://drive.google.com"
CDN_HOST = "https://lh3.googleusercontent.com"

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".avif")

# Widths tried against the thumbnail endpoint, largest first.
THUMBNAIL_WIDTHS = (2000, 1000, 400)
CDN_WIDTH = 2000

_FOLDER_RE = re.compile(r"(?:folders/|id=)([a-zA-Z0-9_-]{10,})")
_FILE_HREF_RE = re.compile(r"/file/d/([a-zA-Z0-9_-]{10,})")
_THUMB_ID_RE = re.compile(r"[?&]id=([a-zA-Z0-9_-]{10,})")
_IMAGE_NAME_RE = re.compile(r"\.(jpe?g|png|gif|webp|bmp|avif)$", re.IGNORECASE)


def normalize_folder_id(value: str | None) -> str:
    """Return the folder identifier contained in ``value``.

    ``value`` may be a full folder URL (``.../folders/<id>``), a legacy
    ``open?id=<id>`` link or the bare identifier. Anything that does not
    look like a URL is returned stripped, unchanged.
    """

    if not value:
        return ""
    text = str(value).strip()
    match = _FOLDER_RE.search(text)
    return match.group(1) if match else text


def embed_url(folder_id: str) -> str:
    return f"{DRIVE_HOST}/embeddedfolderview?id={quote(folder_id, safe='')}#grid"


def file_id_from_href(href: str | None) -> str | None:
    if not href:
        return None
    match = _FILE_HREF_RE.search(href)
    return match.group(1) if match else None


def file_id_from_thumbnail(src: str | None) -> str | None:
    if not src:
        return None
    match = _THUMB_ID_RE.search(src)
    return match.group(1) if match else None


def resource_key_from_url(url: str | None) -> str | None:
    """Return the ``resourcekey`` query parameter of ``url`` if present."""

    if not url:
        return None
    values = parse_qs(urlparse(url).query).get("resourcekey")
    if not values or not values[0]:
        return None
    return values[0]


def is_image_name(name: str | None) -> bool:
    return bool(name) and _IMAGE_NAME_RE.search(name) is not None


def url_with_resource_key(base: str, file_id: str, rk: str | None, extra: str = "") -> str:
    """Append ``id`` (and ``resourcekey`` when given) to ``base``.

    ``extra`` is a pre-encoded query fragment placed before ``id``.
    """

    sep = "&" if "?" in base else "?"
    query = f"{extra}&" if extra else ""
    query += f"id={quote(file_id, safe='')}"
    if rk:
        query += f"&resourcekey={quote(rk, safe='')}"
    return f"{base}{sep}{query}"


def view_url(file_id: str, rk: str | None = None) -> str:
    return url_with_resource_key(f"{DRIVE_HOST}/uc?export=view", file_id, rk)


def thumbnail_url(file_id: str, rk: str | None = None, width: int = 2000) -> str:
    return url_with_resource_key(f"{DRIVE_HOST}/thumbnail", file_id, rk, f"sz=w{width}")


def cdn_url(file_id: str, width: int = CDN_WIDTH) -> str:
    return f"{CDN_HOST}/d/{quote(file_id, safe='')}=w{width}"


def file_link(file_id: str, rk: str | None = None) -> str:
    url = f"{DRIVE_HOST}/file/d/{quote(file_id, safe='')}/view"
    if rk:
        url += f"?resourcekey={quote(rk, safe='')}"
    return url


@dataclass(frozen=True)
class FallbackStep:
    """One source to try for a thumbnail; ``kind == "link"`` is terminal."""

    kind: str
    url: str

    @property
    def is_link(self) -> bool:
        return self.kind == "link"


def fallback_chain(file_id: str, rk: str | None = None) -> list[FallbackStep]:
    """Return every source the gallery tries for ``file_id``, in order.

    The last step is always the plain file link shown once every image
    source has failed to load.
    """

    steps = [FallbackStep("view", view_url(file_id, rk))]
    steps.extend(
        FallbackStep("thumbnail", thumbnail_url(file_id, rk, width))
        for width in THUMBNAIL_WIDTHS
    )
    steps.append(FallbackStep("cdn", cdn_url(file_id)))
    steps.append(FallbackStep("link", file_link(file_id, rk)))
    return steps
