"""Real-estate listing extraction with tiered fallbacks and new-listing monitors."""

__version__ = "0.1.0"
