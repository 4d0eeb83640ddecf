import numpy as np

from .state import ActiveSituation


def situation_aggregates(catalog, node_values):
    """Weighted input aggregate per situation definition, clamped to [0,1].

    ``sum(value * w) / sum(|w|)`` over inputs that resolved at load time;
    a definition with no resolvable inputs aggregates to 0.
    """
    links = catalog.situation_inputs
    n = catalog.num_situations
    total = np.bincount(links.owner, weights=node_values[links.source] * links.weight,
                        minlength=n).astype(np.float64)
    weight_sum = np.bincount(links.owner, weights=np.abs(links.weight), minlength=n).astype(np.float64)
    safe = np.where(weight_sum > 0, weight_sum, 1.0)
    return np.where(weight_sum > 0, np.clip(total / safe, 0.0, 1.0), 0.0)


class SituationController:
    """Hysteresis state machine for emergent situations.

    inactive -> active    when aggregate >= trigger,
                          severity = (a - trigger) / (1 - trigger)
    active   -> inactive  when aggregate <  deactivate
    active   -> active    severity = (a - deactivate) / (trigger - deactivate)

    A band with deactivate >= trigger is an authoring bug; it is run as a
    zero-width band (deactivate = trigger) rather than faulting.
    """

    def __init__(self, catalog):
        self.catalog = catalog
        trigger = np.array([d.trigger_threshold for d in catalog.situations], dtype=np.float64)
        deactivate = np.array([d.deactivate_threshold for d in catalog.situations], dtype=np.float64)
        self.trigger = trigger
        self.deactivate = np.minimum(deactivate, trigger)

    def activation_severity(self, aggregate):
        headroom = 1.0 - self.trigger
        safe = np.where(headroom > 0, headroom, 1.0)
        severity = np.where(headroom > 0, (aggregate - self.trigger) / safe, 0.0)
        return np.clip(severity, 0.0, 1.0)

    def sustained_severity(self, aggregate):
        band = self.trigger - self.deactivate
        safe = np.where(band > 0, band, 1.0)
        severity = np.where(band > 0, (aggregate - self.deactivate) / safe,
                            self.activation_severity(aggregate))
        return np.clip(severity, 0.0, 1.0)

    def step(self, state, aggregates, round_number):
        """Apply one round of transitions; returns (triggered, resolved)."""
        active = state.situation_active
        triggering = ~active & (aggregates >= self.trigger)
        resolving = active & (aggregates < self.deactivate)
        sustaining = active & ~resolving

        resolved = [
            ActiveSituation(self.catalog.situations[q].id,
                            float(state.situation_severity[q]),
                            int(state.situation_round[q]))
            for q in np.flatnonzero(resolving)
        ]

        state.situation_severity[sustaining] = self.sustained_severity(aggregates)[sustaining]
        state.situation_severity[triggering] = self.activation_severity(aggregates)[triggering]
        state.situation_round[triggering] = round_number
        state.situation_active[triggering] = True
        state.situation_active[resolving] = False
        state.situation_severity[resolving] = 0.0
        state.situation_round[resolving] = -1

        triggered = [
            ActiveSituation(self.catalog.situations[q].id,
                            float(state.situation_severity[q]),
                            round_number)
            for q in np.flatnonzero(triggering)
        ]
        return triggered, resolved
