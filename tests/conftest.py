import os
import sys

import numpy as np
import pytest

# Ensure the project root is on the module search path when the package is not
# installed, so that ``import radioflexsim`` works during test collection.
ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from radioflexsim.medium import ConnectionEngine, GraphTopology, Radio  # noqa: E402


@pytest.fixture
def rng():
    return np.random.Generator(np.random.MT19937(1))


@pytest.fixture
def graph_engine():
    """Graph medium with three idle radios registered."""
    model = GraphTopology()
    engine = ConnectionEngine(model, seed=1)
    radios = [Radio(i, float(i), 0.0) for i in range(1, 4)]
    for radio in radios:
        engine.register(radio)
    return engine, model, radios
