import os
import sys

import numpy as np

# Add src/ to the Python path so the tests run without installing the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from housesim.catalog import NodeCatalog  # noqa: E402


class FixedRng:
    """Stand-in generator whose uniforms are all ``value``.

    0.5 zeroes every centred noise term in the engine and the vote model.
    """

    def __init__(self, value=0.5):
        self.value = value
        self.calls = 0

    def random(self, size=None):
        self.calls += 1
        if size is None:
            return self.value
        return np.full(size, self.value, dtype=np.float64)


def effect(target_id, multiplier, formula="linear", delay=0, inertia=0.3):
    return {"target_id": target_id, "multiplier": multiplier, "formula": formula,
            "delay": delay, "inertia": inertia}


def worked_example_catalog():
    """Unemployment feeding consumer confidence, as in the design notes."""
    return NodeCatalog.from_dict({
        "stats": [
            {"id": "unemployment", "value": 0.25, "is_good": False,
             "effects": [effect("consumer_confidence", -0.3, inertia=0.4)]},
            {"id": "consumer_confidence", "value": 0.5},
        ],
    })


def hysteresis_catalog(trigger=0.65, deactivate=0.45, value=0.70):
    return NodeCatalog.from_dict({
        "policies": [{"id": "pressure", "current_value": value}],
        "situations": [{"id": "recession", "trigger_threshold": trigger,
                        "deactivate_threshold": deactivate,
                        "inputs": [{"source_id": "pressure", "weight": 1.0}]}],
    })
