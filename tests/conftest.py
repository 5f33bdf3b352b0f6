"""Root pytest configuration for all tests.

This conftest applies to both unit and integration tests.
"""

import logging

# atlassian-python-api logs missing pages at ERROR level; tests provoke
# those on purpose, so only real warnings are shown.
logging.getLogger("atlassian").setLevel(logging.WARNING)
