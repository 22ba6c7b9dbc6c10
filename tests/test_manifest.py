import json

import pytest

from drive_folder_gallery.manifest import (
    ManifestBuilder,
    ManifestEntry,
    dedupe,
    load_manifest,
    natural_key,
    sort_entries,
    write_manifest,
)


def _keys(entries):
    return [entry.key for entry in entries]


def test_builder_never_produces_duplicate_pairs():
    builder = ManifestBuilder()
    sightings = [
        ("1aaaaaaaaaa", "a.jpg", None),
        ("1aaaaaaaaaa", "a.jpg", None),
        ("1aaaaaaaaaa", "", "0-key"),
        ("1aaaaaaaaaa", "a.jpg", "0-key"),
        ("1aaaaaaaaaa", "a-other.jpg", "0-other"),
        ("1bbbbbbbbbb", "b.jpg", None),
        ("1bbbbbbbbbb", "", None),
    ]
    for file_id, name, rk in sightings:
        builder.add(file_id, name, rk)

    keys = _keys(builder.entries())
    assert len(keys) == len(set(keys))
    assert set(keys) == {
        ("1aaaaaaaaaa", "0-key"),
        ("1aaaaaaaaaa", "0-other"),
        ("1bbbbbbbbbb", ""),
    }


def test_builder_keyless_sighting_merges_into_keyed_entry():
    builder = ManifestBuilder()
    builder.add("1aaaaaaaaaa", "a.jpg", "0-key")
    builder.add("1aaaaaaaaaa", "alt name", None, override=False)
    [entry] = builder.entries()
    assert entry.rk == "0-key"
    assert entry.name == "a.jpg"


def test_builder_name_override_rules():
    builder = ManifestBuilder()
    builder.add("1aaaaaaaaaa", "", None)
    builder.add("1aaaaaaaaaa", "from-thumb.png", None, override=False)
    assert builder.entries()[0].name == "from-thumb.png"
    builder.add("1aaaaaaaaaa", "from-anchor.png", None)
    assert builder.entries()[0].name == "from-anchor.png"
    builder.add("1aaaaaaaaaa", "", None)
    assert builder.entries()[0].name == "from-anchor.png"
    assert len(builder) == 1


def test_dedupe_keeps_first_name_and_color():
    entries = [
        ManifestEntry("1aaaaaaaaaa", "a.jpg"),
        ManifestEntry("1aaaaaaaaaa", "dup.jpg", hex="#ff0000", hue=0, saturation=100, lightness=50, bucket="red"),
        ManifestEntry("1bbbbbbbbbb", "b.jpg"),
    ]
    result = dedupe(entries)
    assert [e.id for e in result] == ["1aaaaaaaaaa", "1bbbbbbbbbb"]
    assert result[0].name == "a.jpg"
    assert result[0].bucket == "red"


def test_natural_sort_is_numeric_and_case_insensitive():
    names = ["img10.jpg", "IMG2.jpg", "img1.jpg", "b.png", "A.png", ""]
    entries = [ManifestEntry(f"id{i:010d}", name) for i, name in enumerate(names)]
    ordered = [e.name for e in sort_entries(entries)]
    assert ordered == ["", "A.png", "b.png", "img1.jpg", "IMG2.jpg", "img10.jpg"]
    assert natural_key("a2") < natural_key("a10")


def test_sort_breaks_ties_by_id():
    entries = [ManifestEntry("1bbbbbbbbbb", "same.jpg"), ManifestEntry("1aaaaaaaaaa", "Same.jpg")]
    assert [e.id for e in sort_entries(entries)] == ["1aaaaaaaaaa", "1bbbbbbbbbb"]


def test_write_manifest_omits_absent_keys_and_pretty_prints(tmp_path):
    path = tmp_path / "out" / "files.json"
    entries = [
        ManifestEntry("1aaaaaaaaaa", "ä.jpg"),
        ManifestEntry(
            "1bbbbbbbbbb",
            "b.jpg",
            rk="0-k",
            hex="#336699",
            hue=210,
            saturation=50,
            lightness=40,
            bucket="blue",
        ),
    ]
    assert write_manifest(path, entries) == 2

    text = path.read_text(encoding="utf-8")
    assert text.startswith("[\n  {\n")
    assert "ä.jpg" in text
    data = json.loads(text)
    assert data[0] == {"id": "1aaaaaaaaaa", "name": "ä.jpg"}
    assert list(data[1]) == ["id", "name", "rk", "hex", "h", "s", "l", "bucket"]
    assert data[1]["h"] == 210


def test_load_manifest_round_trips_colors(tmp_path):
    path = tmp_path / "files.json"
    path.write_text(
        json.dumps([{"id": "1aaaaaaaaaa", "name": "a.jpg", "rk": "", "hex": "#000000", "h": 0, "s": 0, "l": 0, "bucket": "black"}]),
        encoding="utf-8",
    )
    [entry] = load_manifest(path)
    assert entry.rk is None
    assert entry.lightness == 0
    assert entry.bucket == "black"


def test_load_manifest_missing_and_invalid(tmp_path):
    assert load_manifest(tmp_path / "missing.json") == []

    bad = tmp_path / "bad.json"
    bad.write_text('{"id": "x"}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_manifest(bad)

    no_id = tmp_path / "no_id.json"
    no_id.write_text('[{"name": "a.jpg"}]', encoding="utf-8")
    with pytest.raises(ValueError):
        load_manifest(no_id)

    not_object = tmp_path / "not_object.json"
    not_object.write_text("[1]", encoding="utf-8")
    with pytest.raises(ValueError, match="not an object"):
        load_manifest(not_object)
