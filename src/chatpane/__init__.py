"""chatpane: session store and streaming coordinator for a single-page chat client."""

__version__ = "0.1.0"
