"""
Stockfish discovery and installation.
"""

import os
import platform
import shutil
import stat
import tarfile
import traceback
import urllib.request
import zipfile
from pathlib import Path

STOCKFISH_RELEASE_URL = "https://github.com/official-stockfish/Stockfish/releases/download/sf_17"

# Binary names shipped in the release archives, plus the generic name
STOCKFISH_BINARIES = [
    "stockfish-windows-x86-64-avx2.exe",
    "stockfish-windows-x86-64.exe",
    "stockfish.exe",
    "stockfish-macos-m1-apple-silicon",
    "stockfish-macos-x86-64-avx2",
    "stockfish-ubuntu-x86-64-avx2",
    "stockfish",
]


def get_engines_dir() -> Path:
    """Get the path to the engines directory."""
    if os.environ.get("ENGINES_DIR"):
        return Path(os.environ["ENGINES_DIR"])
    # Default to engines/ directory next to the review package
    return Path(__file__).parent.parent / "engines"


def find_stockfish_binary(engine_dir: Path) -> Path | None:
    """Find an installed Stockfish binary under engine_dir/stockfish."""
    stockfish_dir = engine_dir / "stockfish"
    if not stockfish_dir.exists():
        return None

    for name in STOCKFISH_BINARIES:
        binary = stockfish_dir / name
        if binary.is_file():
            return binary

    return None


def resolve_engine_command(path: str | None = None) -> Path:
    """
    Locate the engine binary to run for local evaluation.

    Order: explicit path (or STOCKFISH_PATH), the engines directory,
    then `stockfish` on PATH.

    Raises:
        FileNotFoundError: if no engine binary can be found
    """
    path = path or os.environ.get("STOCKFISH_PATH")
    if path:
        binary = Path(path)
        if not binary.is_file():
            raise FileNotFoundError(f"Engine binary not found: {binary}")
        return binary

    binary = find_stockfish_binary(get_engines_dir())
    if binary:
        return binary

    on_path = shutil.which("stockfish")
    if on_path:
        return Path(on_path)

    raise FileNotFoundError(
        "Stockfish not found. Install it with: python -m review --init-stockfish, "
        "or set STOCKFISH_PATH"
    )


def _release_asset() -> tuple[str, str]:
    """Return (archive name, binary name) for this platform."""
    system = platform.system().lower()
    machine = platform.machine().lower()

    if system == "windows":
        return "stockfish-windows-x86-64-avx2.zip", "stockfish-windows-x86-64-avx2.exe"
    if system == "darwin":
        if machine in ("arm64", "aarch64"):
            return "stockfish-macos-m1-apple-silicon.tar", "stockfish-macos-m1-apple-silicon"
        return "stockfish-macos-x86-64-avx2.tar", "stockfish-macos-x86-64-avx2"
    return "stockfish-ubuntu-x86-64-avx2.tar", "stockfish-ubuntu-x86-64-avx2"


def init_stockfish() -> bool:
    """
    Download and unpack Stockfish from GitHub releases into the engines directory.

    Returns:
        True if Stockfish is available afterwards, False otherwise
    """
    engine_dir = get_engines_dir()
    stockfish_dir = engine_dir / "stockfish"

    if find_stockfish_binary(engine_dir):
        print("Stockfish already installed")
        return True

    stockfish_dir.mkdir(parents=True, exist_ok=True)

    asset_name, binary_name = _release_asset()
    download_url = f"{STOCKFISH_RELEASE_URL}/{asset_name}"
    archive_path = stockfish_dir / asset_name

    print(f"Downloading Stockfish from {download_url}...")
    try:
        urllib.request.urlretrieve(download_url, archive_path)
    except Exception as e:
        print(f"Error: Failed to download Stockfish: {e}")
        traceback.print_exc()
        return False

    print("Extracting...")
    try:
        if asset_name.endswith(".zip"):
            with zipfile.ZipFile(archive_path, 'r') as zf:
                for name in zf.namelist():
                    if Path(name).name == binary_name:
                        (stockfish_dir / binary_name).write_bytes(zf.read(name))
        else:
            with tarfile.open(archive_path, 'r') as tf:
                for member in tf.getmembers():
                    if member.isfile() and Path(member.name).name == binary_name:
                        extracted = tf.extractfile(member)
                        (stockfish_dir / binary_name).write_bytes(extracted.read())

        archive_path.unlink()
    except Exception as e:
        print(f"Error extracting Stockfish: {e}")
        traceback.print_exc()
        return False

    binary = find_stockfish_binary(engine_dir)
    if not binary:
        print("Error: Stockfish binary not found after extraction")
        return False

    if platform.system().lower() != "windows":
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    print(f"Stockfish installed: {binary}")
    return True
