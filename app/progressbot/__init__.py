"""Progress Report Bot: Discord slash commands over a player statistics API."""
from .version import __version__

__all__ = ["__version__"]
