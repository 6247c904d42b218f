from pathlib import Path

__version__ = "0.0.0-dev"

_VERSION_FILE = Path(__file__).with_name("VERSION")
if _VERSION_FILE.is_file():
    __version__ = _VERSION_FILE.read_text().strip()
