"""Top-level gitoverlay commands."""
