"""gitoverlay cache CLI commands.

- list: Show cached remote clones
- remove: Drop the clones of one repository
- clear: Drop the whole remote cache
"""
