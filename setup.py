from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup


ROOT = Path(__file__).resolve().parent


def read_text(path: Path, default: str = "") -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return default


def read_requirements(filename: str) -> list[str]:
    """
    Requirement lines of `filename`, without comments and `-r` includes.
    """
    lines = (line.strip() for line in read_text(ROOT / filename).splitlines())
    return [line for line in lines if line and not line.startswith(("#", "-r"))]


setup(
    name="coursedesk",
    version=read_text(ROOT / "coursedesk" / "VERSION", default="0.1.0"),
    description="Course bulk import validation + weekly schedule assignment wizard (CLI)",
    long_description=read_text(ROOT / "README.md"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests",)),
    package_data={"coursedesk": ["VERSION"]},
    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={"dev": read_requirements("requirements-dev.txt")},
    entry_points={"console_scripts": ["coursedesk=coursedesk.cli:main"]},
)
