"""``aerossr init``: project scaffolding command.

Creates the directory layout the server expects::

    <directory>/
        app.py
        config/
        logs/
        public/index.html
        public/styles/main.css
        src/main.js
        src/greet.js

Existing files are never overwritten, so running it twice is harmless.
"""

import argparse
import sys
from pathlib import Path

from aerossr.cli._templates import APP_PY, GREET_JS, INDEX_HTML, MAIN_CSS, MAIN_JS

_DIRECTORIES = ("config", "logs", "public/styles", "src")
_FILES = {
    "app.py": APP_PY,
    "public/index.html": INDEX_HTML,
    "public/styles/main.css": MAIN_CSS,
    "src/main.js": MAIN_JS,
    "src/greet.js": GREET_JS,
}


def scaffold(target: Path) -> tuple[list[Path], list[Path]]:
    """Create the project under *target*. Returns ``(created, skipped)`` files."""
    for name in _DIRECTORIES:
        (target / name).mkdir(parents=True, exist_ok=True)

    created: list[Path] = []
    skipped: list[Path] = []
    for name, content in _FILES.items():
        path = target / name
        try:
            with path.open("x", encoding="utf-8") as fh:
                fh.write(content)
        except FileExistsError:
            skipped.append(path)
        else:
            created.append(path)
    return created, skipped


def init_project(args: argparse.Namespace) -> None:
    """Scaffold ``args.directory``; exits with status 1 if that fails."""
    target = Path(args.directory)
    try:
        created, skipped = scaffold(target)
    except OSError as exc:
        print(f"Error: failed to initialize project: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    for path in created:
        print(f"  created  {path}")
    for path in skipped:
        print(f"  exists   {path}")
    print(f"AeroSSR project initialized in {target.resolve()}")
    print()
    print(f"  cd {args.directory} && python app.py")
