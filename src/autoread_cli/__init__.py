"""autoread operator CLI."""

from autoread import __version__

__all__ = ["__version__"]
