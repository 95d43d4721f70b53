"""Local voice notification server."""

from voiceserver.version import __version__

__all__ = ["__version__"]
