import math

from .config import SimConfig
from .state import MediaFocus


EXTREME_LOW = 0.2
EXTREME_HIGH = 0.8
BIG_MOVE = 0.03
BASE_AMPLIFICATION = 1.5
AMPLIFICATION_SPREAD = 0.5
BASE_ROUNDS = 2


def media_candidates(state):
    """Newsworthy nodes as (node_id, is_negative) pairs.

    Active situations, stats at an extreme, and stats that moved sharply
    this round. A stat that is both extreme and moving is listed twice.
    """
    cat = state.catalog
    candidates = []
    for q, definition in enumerate(cat.situations):
        if state.situation_active[q]:
            candidates.append((definition.id, definition.severity_type == "crisis"))

    for s, stat in enumerate(cat.stats):
        value = float(state.stat_value[s])
        negative = value < 0.5 if stat.is_good else value > 0.5
        if value < EXTREME_LOW or value > EXTREME_HIGH:
            candidates.append((stat.id, negative))
        if abs(value - state.stat_prev[s]) > BIG_MOVE:
            candidates.append((stat.id, negative))
    return candidates


def generate_media_focus(state, config=None, rng=None):
    """Spotlight one newsworthy node and add it to the state's media cycle.

    Returns the new ``MediaFocus`` or None when the cycle is disabled or
    nothing is newsworthy. Draws three uniforms: pick, amplification, length.
    """
    config = config or SimConfig()
    rng = rng if rng is not None else state.rng
    if not config.enable_media_cycle:
        return None
    candidates = media_candidates(state)
    if not candidates:
        return None

    pick = min(int(math.floor(float(rng.random()) * len(candidates))), len(candidates) - 1)
    node_id, negative = candidates[pick]
    focus = MediaFocus(
        node_id=node_id,
        sentiment="negative" if negative else "positive",
        amplification=BASE_AMPLIFICATION + float(rng.random()) * AMPLIFICATION_SPREAD,
        rounds_remaining=BASE_ROUNDS + int(math.floor(float(rng.random()) * 2)),
    )
    state.media_focus.append(focus)
    state.log(f"Media spotlight on {node_id} ({focus.sentiment})")
    return focus
