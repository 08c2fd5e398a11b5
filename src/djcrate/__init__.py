"""djcrate - track metadata enrichment for DJ library filtering."""

__version__ = "0.1.0"
