"""
Commerce fixtures (seeded catalog, buyers, bearer headers, fake edges)

Imported by conftest.py so every test module sees them without an explicit import.
"""

from test.service.commerce.fixtures import *  # noqa: E402, F403
