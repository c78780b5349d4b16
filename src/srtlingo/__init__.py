"""srtlingo — subtitle translation with LLMs, previewed next to your video."""

__version__ = "0.3.0"
