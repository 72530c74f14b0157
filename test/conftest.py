import os
from pathlib import Path
import warnings

import pytest

DEFAULT = str((Path(__file__).parent / "data").absolute())
DATAPATH = os.environ.get("RFMODEL_TESTPATH", DEFAULT)

if not os.access(DATAPATH, os.X_OK):
    warnings.warn(f"can't access {DATAPATH}")


@pytest.fixture
def datapath():
    return DATAPATH
