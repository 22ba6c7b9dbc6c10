import os
from dataclasses import dataclass, fields, replace

SETTINGS_FILE = "drive_gallery.txt"

# Environment variable to automatically answer yes to prompts
ASSUME_YES_ENV = "DRIVE_GALLERY_ASSUME_YES"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    """Tunables for a scrape run; every field can be set in ``drive_gallery.txt``."""

    output_dir: str = "."
    max_scrolls: int = 80
    scroll_pause: float = 0.9
    stable_rounds: int = 4
    workers: int = 6
    sample_width: int = 128
    headless: bool = True
    timeout: float = 120.0

    def merged(self, **overrides) -> "Settings":
        """Return a copy with every non-``None`` override applied."""

        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def prompt_yes_no(message: str, default: bool = True) -> bool:
    """Prompt the user with a yes/no question.

    If ``DRIVE_GALLERY_ASSUME_YES`` is set to a truthy value (``1``,
    ``true``, ``yes``), the prompt is bypassed and ``True`` is returned
    immediately.
    """

    assume = os.environ.get(ASSUME_YES_ENV, "").lower()
    if assume in {"1", "true", "yes"}:
        print(f"{message} [Y/n]: y (auto)")
        return True

    prompt = f"{message} [{'Y/n' if default else 'y/N'}]: "
    while True:
        choice = input(prompt).strip().lower()
        if not choice:
            return default
        if choice in ("y", "yes"):
            return True
        if choice in ("n", "no"):
            return False
        print("Please enter 'y' or 'n'.")


def load_key_values(path: str) -> dict:
    """Load key=value lines from ``path`` into a dict.

    Ignores blank lines, ``#`` comments and lines without ``=``.
    """
    config = {}
    if not os.path.isfile(path):
        raise FileNotFoundError(path)
    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            config[key.strip()] = value.strip()
    return config


def _convert(key: str, raw: str, kind):
    if kind is bool:
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"Setting '{key}' expects a boolean, got {raw!r}")
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"Setting '{key}' expects {kind.__name__}, got {raw!r}") from None


def load_settings(path: str = SETTINGS_FILE, base: Settings | None = None) -> Settings:
    """Return ``Settings`` updated from ``path``; a missing file keeps defaults."""

    settings = base or Settings()
    try:
        values = load_key_values(path)
    except FileNotFoundError:
        return settings

    types = {f.name: type(getattr(settings, f.name)) for f in fields(Settings)}
    updates = {}
    for key, raw in values.items():
        if key not in types:
            print(f"Ignoring unknown setting '{key}' in {path}")
            continue
        updates[key] = _convert(key, raw, types[key])
    return replace(settings, **updates)
