import sys
from pathlib import Path

import pytest


# Ensure the repo root is on sys.path so tests can import `clearsend.*`
CURRENT_FILE = Path(__file__).resolve()
ROOT_DIR = CURRENT_FILE.parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


from clearsend.config import PipelineConfig
from clearsend.pipeline.state import PipelineState, RecipientLists


@pytest.fixture
def make_state():
    """Build a PipelineState from plain lists and loose config keywords."""
    def _make(to=None, cc=None, bcc=None, **config):
        return PipelineState(
            lists=RecipientLists.of(to, cc, bcc),
            config=PipelineConfig.build(**config),
        )
    return _make
