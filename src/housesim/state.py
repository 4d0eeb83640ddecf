from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

import numpy as np

from .macro import MacroModel
from .rng import clamp, make_rng


@dataclass
class PartyProfile:
    """A contesting party as the vote model sees it."""
    id: str
    social_position: float = 0.0
    economic_position: float = 0.0
    is_government: bool = False
    is_main_opposition: bool = False
    seat_share: float = 0.0


@dataclass
class Seat:
    id: str
    region: str
    owner_id: Optional[str]
    margin: float


@dataclass
class MediaFocus:
    node_id: str
    sentiment: str
    amplification: float
    rounds_remaining: int


@dataclass(frozen=True)
class ActiveSituation:
    definition_id: str
    severity: float
    round_activated: int


@dataclass(frozen=True)
class HistorySnapshot:
    round: int
    policies: MappingProxyType
    stats: MappingProxyType
    situations: MappingProxyType       # active definition id -> severity
    happiness: MappingProxyType
    turnout: MappingProxyType
    seat_counts: MappingProxyType
    leader_id: Optional[str]
    economy: Optional[MappingProxyType] = None
    election: bool = False


class GameSimState:
    """Mutable per-room simulation state.

    Node values are numpy vectors in catalog order; the catalog is only
    referenced, never copied or mutated.
    """
    LOG_LENGTH = 100

    def __init__(self, catalog, seed=None, parties=(), macro=None):
        self.catalog = catalog
        self.seed = seed
        self.rng = make_rng(seed)
        self.round = 0

        # --- Policy sliders ---
        self.policy_current = np.array([p.current_value for p in catalog.policies], dtype=np.float64)
        self.policy_target = np.array([p.target_value for p in catalog.policies], dtype=np.float64)
        np.clip(self.policy_current, 0.0, 1.0, out=self.policy_current)
        np.clip(self.policy_target, 0.0, 1.0, out=self.policy_target)

        # --- Stats ---
        self.stat_value = np.clip([s.value for s in catalog.stats], 0.0, 1.0).astype(np.float64)
        self.stat_prev = self.stat_value.copy()
        self.stat_default = np.array([s.default_value for s in catalog.stats], dtype=np.float64)

        # --- Situations (one live instance per definition) ---
        self.situation_active = np.zeros(catalog.num_situations, dtype=bool)
        self.situation_severity = np.zeros(catalog.num_situations, dtype=np.float64)
        self.situation_round = np.full(catalog.num_situations, -1, dtype=np.int64)

        # --- Voter groups ---
        self.parties = [p for p in parties]
        n_groups, n_parties = catalog.num_groups, len(self.parties)
        self.group_happiness = np.zeros(n_groups, dtype=np.float64)
        self.group_prev_happiness = np.zeros(n_groups, dtype=np.float64)
        self.group_turnout = np.full(n_groups, 0.6, dtype=np.float64)
        self.group_population = np.array(catalog.group_base_population, dtype=np.float64)
        self.group_loyalty = np.zeros((n_groups, n_parties), dtype=np.float64)
        self.group_economic_satisfaction = np.full(n_groups, 0.5, dtype=np.float64)
        self.party_polling = np.full(n_parties, 1.0 / n_parties if n_parties else 0.0)

        self.media_focus = []
        self.seats = [Seat(d.id, d.region, d.owner_id, clamp(d.margin, 0.0, 100.0))
                      for d in catalog.seats]
        self.leader_id = next((p.id for p in self.parties if p.is_government), None)

        self.macro = macro
        self.history = []
        self.log_messages = deque(maxlen=self.LOG_LENGTH)

    # ---------------------------------------------------------------------- #
    #  Views                                                                  #
    # ---------------------------------------------------------------------- #

    def party_index(self, party_id):
        for i, party in enumerate(self.parties):
            if party.id == party_id:
                return i
        return None

    def active_situations(self):
        return [
            ActiveSituation(self.catalog.situations[q].id,
                            float(self.situation_severity[q]),
                            int(self.situation_round[q]))
            for q in np.flatnonzero(self.situation_active)
        ]

    def situation_levels(self):
        """Severity of each situation, 0 where inactive."""
        return np.where(self.situation_active, self.situation_severity, 0.0)

    def node_values(self):
        return self.catalog.node_values(self.policy_current, self.stat_value,
                                        self.situation_levels())

    def node_value(self, node_id):
        flat = self.catalog.flat_index(node_id)
        if flat is None:
            return None
        return float(self.node_values()[flat])

    def seat_counts(self):
        counts = {p.id: 0 for p in self.parties}
        for seat in self.seats:
            if seat.owner_id in counts:
                counts[seat.owner_id] += 1
        return counts

    def log(self, message):
        self.log_messages.append(f"[{self.round}] {message}")

    # ---------------------------------------------------------------------- #
    #  History                                                                #
    # ---------------------------------------------------------------------- #

    def record_snapshot(self, election=False):
        cat = self.catalog
        economy = None
        if self.macro is not None:
            economy = MappingProxyType(self.macro.get_state().as_dict())
        snap = HistorySnapshot(
            round=self.round,
            policies=MappingProxyType({p.id: float(v) for p, v in zip(cat.policies, self.policy_current)}),
            stats=MappingProxyType({s.id: float(v) for s, v in zip(cat.stats, self.stat_value)}),
            situations=MappingProxyType({a.definition_id: a.severity for a in self.active_situations()}),
            happiness=MappingProxyType({g.id: float(v) for g, v in zip(cat.voter_groups, self.group_happiness)}),
            turnout=MappingProxyType({g.id: float(v) for g, v in zip(cat.voter_groups, self.group_turnout)}),
            seat_counts=MappingProxyType(self.seat_counts()),
            leader_id=self.leader_id,
            economy=economy,
            election=election,
        )
        self.history.append(snap)
        return snap


# ---------------------------------------------------------------------- #
#  Orchestrator entry points                                              #
# ---------------------------------------------------------------------- #

def initialize(catalog, seed=None, parties=(), with_economy=False):
    """Fresh game state for one room, seeded for replay."""
    macro = MacroModel(seed=seed) if with_economy else None
    state = GameSimState(catalog, seed=seed, parties=parties, macro=macro)
    state.record_snapshot()
    state.log(f"Simulation initialised: {catalog.num_policies} policies, "
              f"{catalog.num_stats} stats, {catalog.num_situations} situations, "
              f"{catalog.num_seats} seats")
    return state


def get_history(state):
    return tuple(state.history)


def apply_shock(state, variable_or_sector, magnitude):
    """Exogenous perturbation for scripted events.

    Stats and policies are looked up first (values clamped to [0,1]), then
    the macro model's variables and sectors. Unknown names are ignored.
    """
    cat = state.catalog
    s = cat.stat_index(variable_or_sector)
    if s is not None:
        state.stat_value[s] = clamp(state.stat_value[s] + magnitude, 0.0, 1.0)
        state.log(f"Shock: {variable_or_sector} {magnitude:+.3f}")
        return True
    p = cat.policy_index(variable_or_sector)
    if p is not None:
        state.policy_current[p] = clamp(state.policy_current[p] + magnitude, 0.0, 1.0)
        state.log(f"Shock: {variable_or_sector} {magnitude:+.3f}")
        return True
    if state.macro is not None and state.macro.apply_shock(variable_or_sector, magnitude):
        state.log(f"Economic shock: {variable_or_sector} {magnitude:+.3f}")
        return True
    return False
