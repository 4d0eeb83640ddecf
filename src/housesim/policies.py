import math
from dataclasses import dataclass, field

import numpy as np

from .config import SimConfig
from .rng import clamp


@dataclass
class AdjustmentResult:
    applied: list = field(default_factory=list)    # (policy_id, old_target, new_target)
    skipped: list = field(default_factory=list)    # policy ids not applied
    cost: float = 0.0


def apply_policy_adjustments(state, adjustments, config=None):
    """Set new slider targets from a batch of player requests.

    The batch applies partially: unknown policies and non-numeric values
    are skipped, values are clamped to [0,1], and anything beyond the
    per-round cap is dropped.  Nothing raises.
    """
    config = config or SimConfig()
    catalog = state.catalog
    items = adjustments.items() if hasattr(adjustments, "items") else adjustments
    result = AdjustmentResult()

    for policy_id, value in items:
        if len(result.applied) >= config.max_policy_changes:
            result.skipped.append(policy_id)
            continue
        index = catalog.policy_index(policy_id)
        try:
            value = float(value)
        except (TypeError, ValueError):
            value = math.nan
        if index is None or math.isnan(value):
            result.skipped.append(policy_id)
            continue

        old = float(state.policy_target[index])
        new = clamp(value, 0.0, 1.0)
        state.policy_target[index] = new
        result.applied.append((policy_id, old, new))
        result.cost += abs(new - old) * abs(catalog.policies[index].cost_per_point)

    if result.skipped:
        state.log(f"Policy adjustments skipped: {', '.join(map(str, result.skipped))}")
    return result


def budget_balance(state):
    """Positive = surplus. Revenue policies carry a negative cost per point."""
    costs = np.array([p.cost_per_point for p in state.catalog.policies], dtype=np.float64)
    return float(-np.dot(state.policy_current, costs)) if len(costs) else 0.0


def ideology_score(state, social, economic):
    """How well current policy settings suit a party's ideology, in [0,1].

    ``social`` and ``economic`` are +1 (progressive / interventionist) or
    -1; a positive combined bias means the party wants the slider high.
    """
    policies = state.catalog.policies
    if not policies:
        return 0.0
    score = 0.0
    for policy, value in zip(policies, state.policy_current):
        bias = (policy.social_bias * social + policy.economic_bias * economic) / 2.0
        if bias > 0:
            score += value * abs(bias)
        else:
            score += (1.0 - value) * abs(bias)
    return float(score / len(policies))
