"""gitoverlay: apply untracked configuration overlays to git working trees."""

__version__ = "0.3.0"

__all__ = ["__version__"]
