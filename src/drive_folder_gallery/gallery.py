import os
import shutil
from collections.abc import Sequence
from importlib import resources

from .manifest import MANIFEST_NAME, load_manifest

LAYOUTS = ("grid", "river", "masonry", "slideshow", "search")
ASSETS = ("gallery.js", "gallery.css")


def _static(name: str):
    return resources.files("drive_folder_gallery") / "static" / name


def layout_template(layout: str) -> str:
    """Return the HTML of the bundled ``layout`` page."""
    if layout not in LAYOUTS:
        raise ValueError(f"Unknown layout: {layout} (choose from {', '.join(LAYOUTS)})")
    return _static(f"{layout}.html").read_text(encoding="utf-8")


def _copy_static(name: str, dest: str) -> None:
    with _static(name).open("rb") as src, open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)


def render_site(
    manifest_path: str = MANIFEST_NAME,
    site_root: str = "site",
    layouts: Sequence[str] = ("grid",),
    index_layout: str | None = None,
) -> int:
    """Write the static gallery for ``manifest_path`` into ``site_root``.

    Every requested layout is written as ``<layout>.html`` and one of them
    is also written as ``index.html``. The pages load ``files.json`` at
    runtime and show a status message when it is missing or empty.
    """
    layouts = list(dict.fromkeys(layouts))
    if not layouts:
        raise ValueError("At least one layout is required")
    index_layout = index_layout or layouts[0]
    for layout in [*layouts, index_layout]:
        if layout not in LAYOUTS:
            raise ValueError(f"Unknown layout: {layout} (choose from {', '.join(LAYOUTS)})")

    os.makedirs(site_root, exist_ok=True)
    for layout in layouts:
        _copy_static(f"{layout}.html", os.path.join(site_root, f"{layout}.html"))
    _copy_static(f"{index_layout}.html", os.path.join(site_root, "index.html"))
    for asset in ASSETS:
        _copy_static(asset, os.path.join(site_root, asset))

    entries = load_manifest(manifest_path)
    dest_manifest = os.path.join(site_root, MANIFEST_NAME)
    if os.path.isfile(manifest_path) and not (
        os.path.exists(dest_manifest) and os.path.samefile(manifest_path, dest_manifest)
    ):
        shutil.copyfile(manifest_path, dest_manifest)
    return len(entries)
