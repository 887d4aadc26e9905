"""worldshift — versioned schema migrations for a world of documents."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("worldshift")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
