"""Unit tests for the release helper that syncs version constants."""

from pathlib import Path

import pytest

import release


PACKAGE_TEMPLATE = '''"""Package."""

version_major = {0}
version_minor = {1}
version_patch = {2}
__version__ = f"{{version_major}}.{{version_minor}}.{{version_patch}}"
'''


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> tuple[Path, Path]:
    toml_path = tmp_path / "pyproject.toml"
    toml_path.write_text(
        '[project]\nname = "example"\nversion = "2.3.4"\nrequires-python = ">=3.9"\n',
        encoding="utf-8",
    )
    package_path = tmp_path / "__init__.py"
    package_path.write_text(PACKAGE_TEMPLATE.format(1, 0, 0), encoding="utf-8")

    monkeypatch.setattr(release, "TOML_PATH", toml_path)
    monkeypatch.setattr(release, "PACKAGE_PATH", package_path)
    return toml_path, package_path


def test_parse_version() -> None:
    """Test that versions parse into integer triples."""
    assert release.parse_version("1.7.0") == (1, 7, 0)
    assert release.parse_version('"10.0.12"') == (10, 0, 12)

    with pytest.raises(ValueError, match="Invalid version format"):
        release.parse_version("1.7")


def test_read_versions(project: tuple[Path, Path]) -> None:
    """Test reading the version from the TOML and the package file."""
    toml_path, package_path = project

    assert release.read_toml_version(toml_path) == (2, 3, 4)
    assert release.read_package_version(package_path) == (1, 0, 0)


def test_write_package_version(project: tuple[Path, Path]) -> None:
    """Test that the constants are rewritten in place."""
    _, package_path = project

    release.write_package_version((3, 1, 2), package_path)

    assert release.read_package_version(package_path) == (3, 1, 2)
    assert "__version__" in package_path.read_text(encoding="utf-8")


def test_missing_toml_version(tmp_path: Path) -> None:
    """Test that a TOML file without a version is rejected."""
    toml_path = tmp_path / "pyproject.toml"
    toml_path.write_text('[project]\nname = "example"\n', encoding="utf-8")

    with pytest.raises(ValueError, match="No version field"):
        release.read_toml_version(toml_path)


def test_main_check_and_update(project: tuple[Path, Path]) -> None:
    """Test that --check fails until the constants have been updated."""
    assert release.main(["--check"]) == 1
    assert release.main([]) == 0
    assert release.main(["--check"]) == 0


def test_repository_versions_agree() -> None:
    """Test that the package constants match pyproject.toml."""
    assert release.read_package_version() == release.read_toml_version()
