"""
Helper for keeping the package version constants in sync with pyproject.toml.

    python release.py          rewrite the constants from pyproject.toml
    python release.py --check  exit non-zero if they disagree
"""

import re
import sys
from pathlib import Path


TOML_PATH = Path(Path(__file__).parent, "pyproject.toml")
PACKAGE_PATH = Path(Path(__file__).parent, "callback_handler/__init__.py")

_CONSTANTS = ("version_major", "version_minor", "version_patch")


def parse_version(version_str: str) -> tuple[int, int, int]:
    """Parse a version string into major, minor, patch tuple."""
    match = re.match(r"^(\d+)\.(\d+)\.(\d+)$", version_str.strip("\"'"))
    if not match:
        raise ValueError(f"Invalid version format: {version_str}")
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def read_toml_version(toml_path: Path = TOML_PATH) -> tuple[int, int, int]:
    """Extract the project version from a TOML file."""
    content = toml_path.read_text(encoding="utf-8")
    match = re.search(r'^version\s*=\s*["\'](\d+\.\d+\.\d+)["\']', content, re.M)

    if not match:
        raise ValueError(f"No version field found in {toml_path}")

    return parse_version(match.group(1))


def read_package_version(package_path: Path = PACKAGE_PATH) -> tuple[int, int, int]:
    """Extract the version constants from the package __init__ file."""
    content = package_path.read_text(encoding="utf-8")

    parts = []
    for name in _CONSTANTS:
        match = re.search(rf"^{name}\s*=\s*(\d+)", content, re.M)
        if not match:
            raise ValueError(f"Constant not found in {package_path}: {name}")
        parts.append(int(match.group(1)))

    major, minor, patch = parts
    return major, minor, patch


def write_package_version(
    new_version: tuple[int, int, int], package_path: Path = PACKAGE_PATH
) -> None:
    """Rewrite the version constants in the package __init__ file."""
    content = package_path.read_text(encoding="utf-8")

    for name, value in zip(_CONSTANTS, new_version):
        content, count = re.subn(
            rf"^{name}\s*=\s*\d+", f"{name} = {value}", content, flags=re.M
        )
        if count == 0:
            raise ValueError(f"Constant not found in {package_path}: {name}")

    package_path.write_text(content, encoding="utf-8")


def main(argv: list[str]) -> int:
    toml_version = read_toml_version(TOML_PATH)

    if "--check" in argv:
        package_version = read_package_version(PACKAGE_PATH)
        if package_version != toml_version:
            print(
                f"Version mismatch: pyproject.toml has "
                f"{'.'.join(map(str, toml_version))}, {PACKAGE_PATH.name} has "
                f"{'.'.join(map(str, package_version))}"
            )
            return 1
        return 0

    write_package_version(toml_version, PACKAGE_PATH)
    print(f"Updated {PACKAGE_PATH} to {'.'.join(map(str, toml_version))}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
