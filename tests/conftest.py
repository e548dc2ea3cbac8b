import sys
import os

import pytest

REPO_ROOT = os.path.join(os.path.dirname(__file__), "..")

# Add backend/ to path so tests can import the resolver modules directly
sys.path.insert(0, os.path.join(REPO_ROOT, "backend"))

# Add scripts/ to path so tests can import the command-line tools directly
sys.path.insert(0, os.path.join(REPO_ROOT, "scripts"))


@pytest.fixture
def sample_catalog_path():
    """The CSV catalog shipped in data/, independent of DATA_PATH."""
    return os.path.abspath(os.path.join(REPO_ROOT, "data"))
