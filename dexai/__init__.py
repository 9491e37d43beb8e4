"""DexAI: intent-routed question answering over a creature-species catalog."""

__version__ = "0.1.0"
