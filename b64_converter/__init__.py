"""Background base64 <-> image conversion with progress reporting."""

__version__ = "0.1.0"
