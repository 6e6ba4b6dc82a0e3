"""Git integration: command wrapper, exclude ledger and URL parsing."""
from .client import GitClient
from .excludes import ExcludeLedger
from .remote import RemoteReference, is_remote_reference, parse_remote_url

__all__ = ["GitClient", "ExcludeLedger", "RemoteReference", "is_remote_reference", "parse_remote_url"]
