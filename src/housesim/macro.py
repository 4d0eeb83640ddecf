"""Continuous macro-economy model.

Each tick, for every variable V::

    dV = alpha * (V* - V) + sum(relationship effects) + sum(policy effects) + noise

Relationship effects act on the source's deviation from its equilibrium as
it was ``delay`` ticks ago (a ring buffer per variable, pre-filled with the
equilibrium so the first ticks are stable).  Noise is Box-Muller Gaussian
drawn from the model's own seeded generator.  Every variable is hard-clamped
to its bounds after every tick and every shock.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .rng import gaussian_noise, make_rng


VARIABLES = (
    "gdp_growth",
    "unemployment",
    "inflation",
    "public_debt",
    "budget_balance",
    "consumer_confidence",
    "business_confidence",
    "interest_rate",
)
VAR_INDEX = {name: i for i, name in enumerate(VARIABLES)}

SECTORS = (
    "manufacturing",
    "services",
    "finance",
    "technology",
    "healthcare",
    "education",
    "housing",
    "energy",
    "agriculture",
)

#                        equilibrium  min    max    alpha  sigma
DEFAULTS = {
    "gdp_growth":          (2.5,   -10.0,  15.0, 0.10, 0.30),
    "unemployment":        (5.0,     0.0,  30.0, 0.08, 0.20),
    "inflation":           (2.0,    -5.0,  30.0, 0.10, 0.20),
    "public_debt":         (60.0,    0.0, 300.0, 0.05, 0.50),
    "budget_balance":      (0.0,   -15.0,  10.0, 0.12, 0.30),
    "consumer_confidence": (50.0,    0.0, 100.0, 0.12, 2.00),
    "business_confidence": (50.0,    0.0, 100.0, 0.10, 2.00),
    "interest_rate":       (3.0,     0.0,  20.0, 0.10, 0.15),
}

# (from, to, coefficient, delay)
RELATIONSHIPS = (
    ("gdp_growth", "unemployment", -0.40, 1),            # Okun's law
    ("unemployment", "inflation", -0.15, 1),             # Phillips curve
    ("gdp_growth", "inflation", 0.20, 2),                # demand-pull
    ("interest_rate", "gdp_growth", -0.25, 2),           # monetary tightening
    ("consumer_confidence", "gdp_growth", 0.15, 1),
    ("business_confidence", "gdp_growth", 0.20, 1),
    ("gdp_growth", "consumer_confidence", 0.30, 0),
    ("unemployment", "consumer_confidence", -0.35, 0),
    ("inflation", "consumer_confidence", -0.20, 0),
    ("public_debt", "business_confidence", -0.10, 2),
    ("budget_balance", "public_debt", -0.05, 0),
    ("public_debt", "interest_rate", 0.05, 1),            # risk premium
)

SECTOR_EQUILIBRIUM = 50.0
SECTOR_ALPHA = 0.10
SECTOR_SIGMA = 1.5
SECTOR_GDP_SPILLOVER = 0.15

# Initial perturbation sigma per variable
INITIAL_SIGMA = (0.2, 0.2, 0.1, 2.0, 0.2, 1.0, 1.0, 0.1)


@dataclass
class MacroCalibration:
    """Scenario/difficulty overrides; anything left out keeps the default."""
    mean_reversion_alpha: dict = field(default_factory=dict)
    noise_sigma: dict = field(default_factory=dict)
    equilibrium: dict = field(default_factory=dict)
    relationship_strength: float = 1.0
    policy_strength: float = 1.0
    seed: Optional[object] = None


@dataclass(frozen=True)
class MacroPolicyEffect:
    target: str
    immediate: float = 0.0     # one-time impact on the first active tick
    per_period: float = 0.0    # ongoing impact while turns remain
    duration: int = 1
    delay: int = 0
    uncertainty: float = 0.0   # magnitude jittered by 1 + U(-u, u)


@dataclass
class ActiveEffect:
    policy_id: str
    effect: MacroPolicyEffect
    turns_remaining: int
    delay_remaining: int
    fired: bool = False        # immediate impact already applied

    @classmethod
    def start(cls, policy_id, effect):
        return cls(policy_id, effect, effect.duration, effect.delay)


@dataclass(frozen=True)
class MacroState:
    variables: dict
    sectors: dict

    def __getitem__(self, name):
        if name in self.variables:
            return self.variables[name]
        return self.sectors[name]

    def as_dict(self):
        out = dict(self.variables)
        out.update(self.sectors)
        return out


class MacroModel:
    """Stochastic, mean-reverting macro model for the economy-only mode."""

    def __init__(self, calibration=None, seed=None):
        calibration = calibration or MacroCalibration()
        self.rng = make_rng(calibration.seed if calibration.seed is not None else seed)
        self.turn = 0

        n = len(VARIABLES)
        self.equilibrium = np.empty(n)
        self.lower = np.empty(n)
        self.upper = np.empty(n)
        self.alpha = np.empty(n)
        self.sigma = np.empty(n)
        for name, i in VAR_INDEX.items():
            eq, lo, hi, alpha, sigma = DEFAULTS[name]
            self.equilibrium[i] = calibration.equilibrium.get(name, eq)
            self.lower[i], self.upper[i] = lo, hi
            self.alpha[i] = calibration.mean_reversion_alpha.get(name, alpha)
            self.sigma[i] = calibration.noise_sigma.get(name, sigma)
        self.relationship_strength = calibration.relationship_strength
        self.policy_strength = calibration.policy_strength

        self.rel_from = np.array([VAR_INDEX[r[0]] for r in RELATIONSHIPS])
        self.rel_to = np.array([VAR_INDEX[r[1]] for r in RELATIONSHIPS])
        self.rel_coef = np.array([r[2] for r in RELATIONSHIPS])
        self.rel_delay = np.array([r[3] for r in RELATIONSHIPS])

        # Ring buffer: newest entry last, depth max_delay + 1
        depth = int(self.rel_delay.max()) + 1 if len(RELATIONSHIPS) else 1
        self.past_values = deque((self.equilibrium.copy() for _ in range(depth)), maxlen=depth)

        self.values = np.array([self.equilibrium[i] + gaussian_noise(self.rng, INITIAL_SIGMA[i])
                                for i in range(n)])
        self.sectors = np.array([SECTOR_EQUILIBRIUM + gaussian_noise(self.rng, 1.0)
                                 for _ in SECTORS])
        self._clamp()

        self.history = [self.get_state()]

    # ---------------------------------------------------------------------- #
    #  Public API                                                             #
    # ---------------------------------------------------------------------- #

    def get_state(self):
        return MacroState(
            variables={name: float(self.values[i]) for name, i in VAR_INDEX.items()},
            sectors={name: float(v) for name, v in zip(SECTORS, self.sectors)},
        )

    def get_history(self):
        return [MacroState(dict(s.variables), dict(s.sectors)) for s in self.history]

    def delayed_value(self, index, delay):
        """Value of variable ``index`` as it was ``delay`` ticks ago."""
        delay = min(int(delay), len(self.past_values) - 1)
        return self.past_values[-1 - delay][index]

    def tick(self, active_effects=()):
        """Advance one turn.

        ``active_effects`` is mutated in place: delays and remaining turns
        count down, so callers pass the same list every tick.
        """
        self.turn += 1
        self.past_values.append(self.values.copy())

        # 1. Mean reversion
        deltas = self.alpha * (self.equilibrium - self.values)

        # 2. Relationships on lagged deviations
        lagged = np.array([self.delayed_value(f, d) for f, d in zip(self.rel_from, self.rel_delay)])
        contrib = self.rel_coef * (lagged - self.equilibrium[self.rel_from]) * self.relationship_strength
        np.add.at(deltas, self.rel_to, contrib)

        # 3. Policy effects
        for active in active_effects:
            if active.delay_remaining > 0:
                active.delay_remaining -= 1
                continue
            target = VAR_INDEX.get(active.effect.target)
            if target is None:
                continue
            u = active.effect.uncertainty
            jitter = 1.0 + (float(self.rng.random()) * 2.0 - 1.0) * u
            if not active.fired:
                deltas[target] += active.effect.immediate * jitter * self.policy_strength
                active.fired = True
            if active.turns_remaining > 0:
                deltas[target] += active.effect.per_period * jitter * self.policy_strength
                active.turns_remaining -= 1

        # 4. Noise
        for i in range(len(VARIABLES)):
            deltas[i] += gaussian_noise(self.rng, self.sigma[i])

        self.values = self.values + deltas

        # Sectors follow GDP around their own equilibrium
        gdp_deviation = self.values[VAR_INDEX["gdp_growth"]] - self.equilibrium[VAR_INDEX["gdp_growth"]]
        for k in range(len(SECTORS)):
            delta = SECTOR_ALPHA * (SECTOR_EQUILIBRIUM - self.sectors[k])
            delta += SECTOR_GDP_SPILLOVER * gdp_deviation
            delta += gaussian_noise(self.rng, SECTOR_SIGMA)
            self.sectors[k] = self.sectors[k] + delta

        self._clamp()
        state = self.get_state()
        self.history.append(state)
        return state

    def apply_shock(self, name, magnitude):
        if name in VAR_INDEX:
            self.values[VAR_INDEX[name]] += magnitude
        elif name in SECTORS:
            self.sectors[SECTORS.index(name)] += magnitude
        else:
            return False
        self._clamp()
        return True

    def sector_health(self, sector):
        if sector in SECTORS:
            return float(self.sectors[SECTORS.index(sector)])
        return SECTOR_EQUILIBRIUM

    def summary(self):
        """Composite score of key indicators and its qualitative rating."""
        v, eq = self.values, self.equilibrium
        gdp = VAR_INDEX["gdp_growth"]
        unemp = VAR_INDEX["unemployment"]
        infl = VAR_INDEX["inflation"]
        debt = VAR_INDEX["public_debt"]
        confidence = (v[VAR_INDEX["consumer_confidence"]] - 50) + (v[VAR_INDEX["business_confidence"]] - 50)

        composite = ((v[gdp] - eq[gdp]) * 8
                     + (eq[unemp] - v[unemp]) * 6
                     - abs(v[infl] - eq[infl]) * 4
                     + confidence * 0.2
                     + (eq[debt] - v[debt]) * 0.1)

        if composite >= 15:
            rating = "strong"
        elif composite >= 0:
            rating = "moderate"
        elif composite >= -15:
            rating = "weak"
        else:
            rating = "crisis"
        return float(composite), rating

    # ---------------------------------------------------------------------- #
    #  Utilities                                                              #
    # ---------------------------------------------------------------------- #

    def _clamp(self):
        np.clip(self.values, self.lower, self.upper, out=self.values)
        np.clip(self.sectors, 0.0, 100.0, out=self.sectors)
