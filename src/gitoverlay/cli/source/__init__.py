"""gitoverlay source CLI commands.

Manage the ordered source list (first = highest priority):
- add: Register a source and clone it
- list: Show sources in priority order
- remove: Unregister a source and drop its clone
- move: Change a source's priority
"""
