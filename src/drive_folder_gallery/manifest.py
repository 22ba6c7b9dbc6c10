"""The ``files.json`` manifest written by the scraper and read by the gallery."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

MANIFEST_NAME = "files.json"

_DIGITS_RE = re.compile(r"(\d+)")

# Attribute name -> JSON key, in output order.
_JSON_KEYS = {
    "id": "id",
    "name": "name",
    "rk": "rk",
    "hex": "hex",
    "hue": "h",
    "saturation": "s",
    "lightness": "l",
    "bucket": "bucket",
}


@dataclass
class ManifestEntry:
    """A single file found in the scraped folder."""

    id: str
    name: str = ""
    rk: str | None = None
    hex: str | None = None
    hue: int | None = None
    saturation: int | None = None
    lightness: int | None = None
    bucket: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.id, self.rk or "")

    def to_dict(self) -> dict:
        data: dict = {}
        for attr, json_key in _JSON_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            data[json_key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ManifestEntry:
        if not isinstance(data, dict):
            raise ValueError(f"Manifest entry is not an object: {data!r}")
        if not data.get("id"):
            raise ValueError(f"Manifest entry without an id: {data!r}")
        kwargs = {
            attr: data.get(json_key)
            for attr, json_key in _JSON_KEYS.items()
            if json_key in data
        }
        kwargs["name"] = kwargs.get("name") or ""
        kwargs["rk"] = kwargs.get("rk") or None
        return cls(**kwargs)


class ManifestBuilder:
    """Collect entries while keeping ``(id, rk)`` pairs unique.

    A sighting without a resource-key is merged into any entry that already
    has the same id. A sighting with a key upgrades a key-less entry for
    that id instead of creating a second one.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], ManifestEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _find(self, file_id: str, rk: str | None) -> ManifestEntry | None:
        exact = self._entries.get((file_id, rk or ""))
        if exact is not None:
            return exact
        for entry in self._entries.values():
            if entry.id != file_id:
                continue
            if not rk or not entry.rk:
                return entry
        return None

    def add(
        self, file_id: str, name: str = "", rk: str | None = None, *, override: bool = True
    ) -> ManifestEntry:
        """Record a sighting of ``file_id``.

        ``override`` controls whether a non-empty ``name`` replaces the name
        of an entry that was already recorded.
        """

        existing = self._find(file_id, rk)
        if existing is None:
            entry = ManifestEntry(id=file_id, name=name or "", rk=rk or None)
            self._entries[entry.key] = entry
            return entry

        if rk and not existing.rk:
            del self._entries[existing.key]
            existing.rk = rk
            self._entries[existing.key] = existing
        if name and (override or not existing.name):
            existing.name = name
        return existing

    def entries(self) -> list[ManifestEntry]:
        return list(self._entries.values())


def dedupe(entries: Iterable[ManifestEntry]) -> list[ManifestEntry]:
    """Return ``entries`` with duplicate ``(id, rk)`` sightings merged."""

    builder = ManifestBuilder()
    for entry in entries:
        kept = builder.add(entry.id, entry.name, entry.rk, override=False)
        # keep color data sampled for either sighting
        for attr in ("hex", "hue", "saturation", "lightness", "bucket"):
            if getattr(kept, attr) is None:
                setattr(kept, attr, getattr(entry, attr))
    return builder.entries()


def natural_key(text: str) -> tuple:
    """Sort key comparing digit runs numerically and letters case-insensitively."""

    parts = _DIGITS_RE.split(text.casefold())
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in parts
        if part
    )


def sort_entries(entries: Iterable[ManifestEntry]) -> list[ManifestEntry]:
    return sorted(entries, key=lambda e: (natural_key(e.name or ""), e.id))


def load_manifest(path: str | Path) -> list[ManifestEntry]:
    """Return entries from ``path``; a missing file yields an empty list."""

    path = Path(path)
    if not path.is_file():
        return []
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return [ManifestEntry.from_dict(item) for item in data]


def write_manifest(path: str | Path, entries: Iterable[ManifestEntry]) -> int:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [entry.to_dict() for entry in entries]
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)
        fh.write("\n")
    return len(data)
