"""rpgtranslator: translate RPG Maker MV game data with remote LLM backends."""

__version__ = "0.1.0"
