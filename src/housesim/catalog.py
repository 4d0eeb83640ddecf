"""Immutable content catalog: policies, stats, situations, voter groups, seats.

The catalog is built once per game from plain mappings (the content loader
hands us parsed JSON) and never mutated afterwards.  Every id reference in
the content -- effect targets, situation inputs, voter concerns, population
modifiers, voter reactions, seat demographics -- is resolved here, once, into
integer indices over a single flat node vector::

    [ policies (P) | stats (S) | situations (Q) ]

so the per-tick passes only do numpy gathers and ``np.add.at`` scatters.
References that do not resolve are dropped (and remembered in
``catalog.dangling`` for the validation tooling); content tables are
externally authored and may be incomplete.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple, Optional

import numpy as np

from .rng import clamp


FORMULAS = ("linear", "sqrt", "squared", "threshold", "inverse")
FORMULA_CODES = {name: code for code, name in enumerate(FORMULAS)}


class NodeKind(IntEnum):
    POLICY = 0
    STAT = 1
    SITUATION = 2


class NodeRef(NamedTuple):
    kind: NodeKind
    index: int


# ---------------------------------------------------------------------- #
#  Definitions                                                            #
# ---------------------------------------------------------------------- #

@dataclass(frozen=True)
class Effect:
    target_id: str
    multiplier: float
    formula: str = "linear"
    delay: int = 0
    inertia: float = 0.3


@dataclass(frozen=True)
class PolicyNode:
    id: str
    category: str = ""
    name: str = ""
    current_value: float = 0.5
    target_value: float = 0.5
    cost_per_point: float = 0.0        # negative = revenue
    implementation_delay: int = 1      # rounds to converge
    social_bias: float = 0.0
    economic_bias: float = 0.0
    effects: tuple = ()


@dataclass(frozen=True)
class StatNode:
    id: str
    name: str = ""
    value: float = 0.5
    default_value: float = 0.5
    display_min: float = 0.0
    display_max: float = 1.0
    is_good: bool = True
    effects: tuple = ()

    def display_value(self, value):
        return self.display_min + value * (self.display_max - self.display_min)


class SituationInput(NamedTuple):
    source_id: str
    weight: float


class VoterReaction(NamedTuple):
    group_id: str
    delta: float


@dataclass(frozen=True)
class SituationDefinition:
    id: str
    trigger_threshold: float
    deactivate_threshold: float
    name: str = ""
    severity_type: str = "crisis"      # crisis | problem | boom
    inputs: tuple = ()
    effects: tuple = ()
    voter_reactions: tuple = ()


class VoterConcern(NamedTuple):
    node_id: str
    weight: float
    desires_high: bool


class PopulationModifier(NamedTuple):
    source_id: str
    weight: float


@dataclass(frozen=True)
class VoterGroupDefinition:
    id: str
    name: str = ""
    concerns: tuple = ()
    base_population: float = 1.0
    persuadability: float = 0.5
    social_leaning: float = 0.0        # [-1, 1]
    economic_leaning: float = 0.0      # [-1, 1]
    partisanship: float = 0.3          # weight of ideology vs. performance
    population_modifiers: tuple = ()
    economic_priorities: tuple = ()    # ((indicator, weight), ...)
    volatility: float = 0.3            # momentum of economic satisfaction


@dataclass(frozen=True)
class SeatDefinition:
    id: str
    region: str = ""
    demographics: tuple = ()           # ((group_id, weight), ...)
    owner_id: Optional[str] = None
    margin: float = 50.0               # 0-100, higher = safer


# ---------------------------------------------------------------------- #
#  Compiled edge tables                                                   #
# ---------------------------------------------------------------------- #

def _frozen(values, dtype):
    arr = np.asarray(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class EffectTable:
    """Resolved effect edges. ``source`` indexes the flat node vector
    (or the situation array for situation effects), ``target`` the stats."""
    source: np.ndarray
    target: np.ndarray
    multiplier: np.ndarray
    formula: np.ndarray
    delay: np.ndarray
    inertia: np.ndarray

    @classmethod
    def build(cls, rows):
        cols = list(zip(*rows)) if rows else [()] * 6
        return cls(
            source=_frozen(cols[0], np.int64),
            target=_frozen(cols[1], np.int64),
            multiplier=_frozen(cols[2], np.float64),
            formula=_frozen(cols[3], np.int8),
            delay=_frozen(cols[4], np.int64),
            inertia=_frozen(cols[5], np.float64),
        )

    def __len__(self):
        return len(self.source)


@dataclass(frozen=True)
class WeightedLinks:
    """Generic (owner, source, weight) edge list, e.g. situation inputs."""
    owner: np.ndarray
    source: np.ndarray
    weight: np.ndarray

    @classmethod
    def build(cls, rows):
        cols = list(zip(*rows)) if rows else [()] * 3
        return cls(
            owner=_frozen(cols[0], np.int64),
            source=_frozen(cols[1], np.int64),
            weight=_frozen(cols[2], np.float64),
        )

    def __len__(self):
        return len(self.owner)


# ---------------------------------------------------------------------- #
#  Catalog                                                                #
# ---------------------------------------------------------------------- #

class NodeCatalog:
    """Definitions plus the index tables the engine runs on."""

    def __init__(self, policies=(), stats=(), situations=(), voter_groups=(), seats=()):
        self.policies = tuple(policies)
        self.stats = tuple(stats)
        self.situations = tuple(situations)
        self.voter_groups = tuple(voter_groups)
        self.seats = tuple(seats)

        self._refs = {}
        for kind, nodes in ((NodeKind.POLICY, self.policies),
                            (NodeKind.STAT, self.stats),
                            (NodeKind.SITUATION, self.situations)):
            for index, node in enumerate(nodes):
                if not node.id:
                    raise ValueError(f"{kind.name.lower()} at position {index} has no id")
                if node.id in self._refs:
                    raise ValueError(f"Duplicate node id: {node.id!r}")
                self._refs[node.id] = NodeRef(kind, index)

        self.group_index = self._index_of(self.voter_groups, "voter group")
        self.seat_index = self._index_of(self.seats, "seat")

        self.num_policies = len(self.policies)
        self.num_stats = len(self.stats)
        self.num_situations = len(self.situations)
        self.num_groups = len(self.voter_groups)
        self.num_seats = len(self.seats)
        self.offsets = (0, self.num_policies, self.num_policies + self.num_stats)
        self.num_nodes = self.num_policies + self.num_stats + self.num_situations

        self.dangling = []
        self._compile()

    @staticmethod
    def _index_of(items, label):
        index = {}
        for pos, item in enumerate(items):
            if not item.id:
                raise ValueError(f"{label} at position {pos} has no id")
            if item.id in index:
                raise ValueError(f"Duplicate {label} id: {item.id!r}")
            index[item.id] = pos
        return index

    # --- lookup ---

    def resolve(self, node_id):
        return self._refs.get(node_id)

    def flat_index(self, node_id):
        ref = self._refs.get(node_id)
        if ref is None:
            return None
        return self.offsets[ref.kind] + ref.index

    def stat_index(self, stat_id):
        ref = self._refs.get(stat_id)
        if ref is None or ref.kind != NodeKind.STAT:
            return None
        return ref.index

    def policy_index(self, policy_id):
        ref = self._refs.get(policy_id)
        if ref is None or ref.kind != NodeKind.POLICY:
            return None
        return ref.index

    def situation_index(self, situation_id):
        ref = self._refs.get(situation_id)
        if ref is None or ref.kind != NodeKind.SITUATION:
            return None
        return ref.index

    def node_values(self, policy_values, stat_values, situation_levels):
        """Concatenate live values into the flat vector the edge tables index."""
        return np.concatenate([policy_values, stat_values, situation_levels])

    # --- compilation ---

    def _drop(self, owner_id, ref_id):
        self.dangling.append((owner_id, ref_id))

    def _effect_rows(self, owner_id, source, effects, skip_target=None):
        rows = []
        for effect in effects:
            target = self.stat_index(effect.target_id)
            if target is None:
                self._drop(owner_id, effect.target_id)
                continue
            if effect.target_id == skip_target:
                continue
            rows.append((source, target, effect.multiplier,
                         FORMULA_CODES.get(effect.formula, 0),
                         effect.delay, effect.inertia))
        return rows

    def _compile(self):
        rows = []
        for i, policy in enumerate(self.policies):
            rows += self._effect_rows(policy.id, self.offsets[NodeKind.POLICY] + i, policy.effects)
        for i, stat in enumerate(self.stats):
            # self-loops carry no meaning in a one-tick snapshot
            rows += self._effect_rows(stat.id, self.offsets[NodeKind.STAT] + i, stat.effects,
                                      skip_target=stat.id)
        self.effects = EffectTable.build(rows)

        situation_rows, input_rows, reaction_rows = [], [], []
        for q, sit in enumerate(self.situations):
            situation_rows += self._effect_rows(sit.id, q, sit.effects)
            for item in sit.inputs:
                flat = self.flat_index(item.source_id)
                if flat is None:
                    self._drop(sit.id, item.source_id)
                    continue
                input_rows.append((q, flat, item.weight))
            for reaction in sit.voter_reactions:
                g = self.group_index.get(reaction.group_id)
                if g is None:
                    self._drop(sit.id, reaction.group_id)
                    continue
                reaction_rows.append((q, g, reaction.delta))
        self.situation_effects = EffectTable.build(situation_rows)
        self.situation_inputs = WeightedLinks.build(input_rows)
        self.voter_reactions = WeightedLinks.build(reaction_rows)

        concern_rows, desires_high, modifier_rows = [], [], []
        for g, group in enumerate(self.voter_groups):
            for concern in group.concerns:
                flat = self.flat_index(concern.node_id)
                if flat is None:
                    self._drop(group.id, concern.node_id)
                    continue
                concern_rows.append((g, flat, concern.weight))
                desires_high.append(bool(concern.desires_high))
            for mod in group.population_modifiers:
                flat = self.flat_index(mod.source_id)
                if flat is None:
                    self._drop(group.id, mod.source_id)
                    continue
                modifier_rows.append((g, flat, mod.weight))
        self.concerns = WeightedLinks.build(concern_rows)
        self.concern_desires_high = _frozen(desires_high, bool)
        self.population_modifiers = WeightedLinks.build(modifier_rows)
        self.group_has_modifiers = _frozen(
            np.bincount(self.population_modifiers.owner, minlength=self.num_groups) > 0, bool)

        demographics = np.zeros((self.num_seats, self.num_groups), dtype=np.float64)
        for s, seat in enumerate(self.seats):
            for group_id, weight in seat.demographics:
                g = self.group_index.get(group_id)
                if g is None:
                    self._drop(seat.id, group_id)
                    continue
                demographics[s, g] += weight
        self.seat_demographics = _frozen(demographics, np.float64)

        self.group_partisanship = _frozen([g.partisanship for g in self.voter_groups], np.float64)
        self.group_persuadability = _frozen([g.persuadability for g in self.voter_groups], np.float64)
        self.group_social = _frozen([g.social_leaning for g in self.voter_groups], np.float64)
        self.group_economic = _frozen([g.economic_leaning for g in self.voter_groups], np.float64)
        self.group_volatility = _frozen([clamp(g.volatility, 0.0, 1.0) for g in self.voter_groups],
                                        np.float64)
        self.group_base_population = _frozen([g.base_population for g in self.voter_groups],
                                             np.float64)

    # --- loading ---

    @classmethod
    def from_dict(cls, data):
        """Build a catalog from parsed content tables.

        Accepts both snake_case keys and the camelCase keys the content
        files were originally authored with.
        """
        return cls(
            policies=[_policy(raw) for raw in data.get("policies", ())],
            stats=[_stat(raw) for raw in data.get("stats", ())],
            situations=[_situation(raw) for raw in data.get("situations", ())],
            voter_groups=[_voter_group(raw) for raw in data.get("voter_groups",
                                                              data.get("voterGroups", ()))],
            seats=[_seat(raw) for raw in data.get("seats", ())],
        )


# ---------------------------------------------------------------------- #
#  Mapping -> definition helpers                                          #
# ---------------------------------------------------------------------- #

_MISSING = object()


def _camel(name):
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _pick(raw, name, default=_MISSING, *aliases):
    for key in (name, _camel(name)) + aliases:
        if key in raw:
            return raw[key]
    if default is _MISSING:
        raise ValueError(f"Missing required field {name!r} in {raw.get('id', raw)!r}")
    return default


def _effects(raw):
    return tuple(
        Effect(
            target_id=_pick(e, "target_id"),
            multiplier=float(_pick(e, "multiplier")),
            formula=_pick(e, "formula", "linear"),
            delay=int(_pick(e, "delay", 0)),
            inertia=float(_pick(e, "inertia", 0.3)),
        )
        for e in _pick(raw, "effects", ())
    )


def _policy(raw):
    bias = _pick(raw, "ideological_bias", {})
    current = float(_pick(raw, "current_value", 0.5, "value"))
    return PolicyNode(
        id=_pick(raw, "id"),
        category=_pick(raw, "category", ""),
        name=_pick(raw, "name", ""),
        current_value=current,
        target_value=float(_pick(raw, "target_value", current)),
        cost_per_point=float(_pick(raw, "cost_per_point", 0.0)),
        implementation_delay=int(_pick(raw, "implementation_delay", 1)),
        social_bias=float(bias.get("social", 0.0)),
        economic_bias=float(bias.get("economic", 0.0)),
        effects=_effects(raw),
    )


def _stat(raw):
    value = float(_pick(raw, "value", 0.5))
    return StatNode(
        id=_pick(raw, "id"),
        name=_pick(raw, "name", ""),
        value=value,
        default_value=float(_pick(raw, "default_value", value)),
        display_min=float(_pick(raw, "display_min", 0.0)),
        display_max=float(_pick(raw, "display_max", 1.0)),
        is_good=bool(_pick(raw, "is_good", True)),
        effects=_effects(raw),
    )


def _situation(raw):
    return SituationDefinition(
        id=_pick(raw, "id"),
        name=_pick(raw, "name", ""),
        severity_type=_pick(raw, "severity_type", "crisis"),
        trigger_threshold=float(_pick(raw, "trigger_threshold")),
        deactivate_threshold=float(_pick(raw, "deactivate_threshold")),
        inputs=tuple(SituationInput(_pick(i, "source_id"), float(_pick(i, "weight")))
                     for i in _pick(raw, "inputs", ())),
        effects=_effects(raw),
        voter_reactions=tuple(VoterReaction(_pick(r, "group_id"), float(_pick(r, "delta")))
                              for r in _pick(raw, "voter_reactions", ())),
    )


def _voter_group(raw):
    return VoterGroupDefinition(
        id=_pick(raw, "id"),
        name=_pick(raw, "name", ""),
        concerns=tuple(VoterConcern(_pick(c, "node_id"), float(_pick(c, "weight")),
                                    bool(_pick(c, "desires_high", True)))
                       for c in _pick(raw, "concerns", ())),
        base_population=float(_pick(raw, "base_population", 1.0)),
        persuadability=float(_pick(raw, "persuadability", 0.5)),
        social_leaning=float(_pick(raw, "social_leaning", 0.0)),
        economic_leaning=float(_pick(raw, "economic_leaning", 0.0)),
        partisanship=float(_pick(raw, "partisanship", 0.3)),
        population_modifiers=tuple(PopulationModifier(_pick(m, "source_id"), float(_pick(m, "weight")))
                                   for m in _pick(raw, "population_modifiers", ())),
        economic_priorities=tuple((name, float(weight)) for name, weight
                                  in dict(_pick(raw, "economic_priorities", {}, "priorities")).items()),
        volatility=float(_pick(raw, "volatility", 0.3)),
    )


def _seat(raw):
    return SeatDefinition(
        id=_pick(raw, "id"),
        region=_pick(raw, "region", "", "state"),
        demographics=tuple((_pick(d, "group_id"), float(_pick(d, "weight")))
                           for d in _pick(raw, "demographics", ())),
        owner_id=_pick(raw, "owner_id", None, "ownerPlayerId"),
        margin=float(_pick(raw, "margin", 50.0)),
    )
