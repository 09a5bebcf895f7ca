"""
Memory Journal: accounts, sessions and private or public memories on OpenSearch.

Importing the package installs the stdout log handler, so every entry point
(the MCP server, migrations, tests) logs the same way.
"""

from .utils.logging_config import setup_logging

setup_logging()
