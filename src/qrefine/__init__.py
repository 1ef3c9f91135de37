"""qrefine: static SQL anti-pattern detection for .sql files and embedded queries."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("qrefine")
except PackageNotFoundError:
    __version__ = "dev"
