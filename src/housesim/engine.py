from dataclasses import dataclass, field

import numpy as np

from .catalog import FORMULA_CODES
from .config import SimConfig
from .policies import budget_balance
from .rng import lerp
from .situations import SituationController, situation_aggregates
from .voters import economic_priority_matrix, refresh_polling


def apply_formula(source_values, multiplier, formula_codes):
    """Vectorised link formula: transform a [0,1] source, then scale."""
    x = np.clip(source_values, 0.0, 1.0)
    transformed = np.select(
        [formula_codes == FORMULA_CODES["sqrt"],
         formula_codes == FORMULA_CODES["squared"],
         formula_codes == FORMULA_CODES["threshold"],
         formula_codes == FORMULA_CODES["inverse"]],
        [np.sqrt(x),
         x * x,
         np.where(x > 0.5, (x - 0.5) * 2.0, 0.0),   # sharp activation above 0.5
         1.0 - x],
        default=x,
    )
    return transformed * multiplier


@dataclass(frozen=True)
class PolicyTransition:
    policy_id: str
    from_value: float
    to_value: float


@dataclass(frozen=True)
class StatChange:
    stat_id: str
    from_value: float
    to_value: float


@dataclass(frozen=True)
class HappinessChange:
    group_id: str
    from_value: float
    to_value: float


@dataclass
class TickResult:
    round: int
    policy_transitions: list = field(default_factory=list)
    stat_changes: list = field(default_factory=list)
    situations_triggered: list = field(default_factory=list)
    situations_resolved: list = field(default_factory=list)
    voter_happiness_changes: list = field(default_factory=list)
    media_decayed: list = field(default_factory=list)
    budget_balance: float = 0.0


class EffectPropagator:
    """One deterministic round of the policy web.

    Passes run in a fixed order (see ``update``) and consume the RNG in a
    fixed order, so a seeded generator replays a game exactly.  Stat deltas
    are gathered from the pre-tick snapshot into a fresh accumulator and
    applied together, which keeps cyclic stat graphs order-independent.
    """
    # --- Engine constants ---
    CHANGE_EPSILON = 0.001     # policies closer than this are settled
    SNAP_TOLERANCE = 0.005     # snap straight to target inside this band
    MIN_SPEED = 0.1
    MIN_INERTIA = 0.05
    REPORT_THRESHOLD = 0.001   # stat moves smaller than this are not reported
    TURNOUT_BASE = 0.4
    TURNOUT_MOOD = 0.5
    TURNOUT_NOISE = 0.1
    TURNOUT_MIN = 0.3
    TURNOUT_MAX = 0.95
    POPULATION_MIN = 0.5       # x base population
    POPULATION_MAX = 1.5

    def __init__(self, catalog, config=None):
        self.catalog = catalog
        self.config = config or SimConfig()
        self.situations = SituationController(catalog)
        # the economy counts as one more concern, weighted by a group's priorities
        self.economic_weight = economic_priority_matrix(catalog).sum(axis=1)

    # ---------------------------------------------------------------------- #
    #  Passes                                                                 #
    # ---------------------------------------------------------------------- #

    def transition_policies(self, state, result):
        cat = self.catalog
        moving = np.abs(state.policy_current - state.policy_target) > self.CHANGE_EPSILON
        if not np.any(moving):
            return
        delays = np.array([p.implementation_delay for p in cat.policies], dtype=np.float64)
        safe = np.where(delays > 0, delays, 1.0)
        speed = np.clip(np.where(delays > 0, 1.0 / safe, 1.0), self.MIN_SPEED, 1.0)

        before = state.policy_current.copy()
        stepped = before + (state.policy_target - before) * speed
        snapped = np.abs(stepped - state.policy_target) < self.SNAP_TOLERANCE
        stepped = np.where(snapped, state.policy_target, stepped)
        state.policy_current[moving] = np.clip(stepped[moving], 0.0, 1.0)

        for i in np.flatnonzero(moving):
            result.policy_transitions.append(
                PolicyTransition(cat.policies[i].id, float(before[i]), float(state.policy_current[i])))

    def snapshot_stats(self, state):
        state.stat_prev[:] = state.stat_value

    def accumulate_effects(self, state, round_number):
        """Sum every live policy/stat effect into a fresh per-stat delta array.

        Sources are read from the values as they stand before any stat has
        been written this round.
        """
        table = self.catalog.effects
        deltas = np.zeros(self.catalog.num_stats, dtype=np.float64)
        live = round_number >= table.delay
        if not np.any(live):
            return deltas
        source_values = state.node_values()[table.source[live]]
        contribution = apply_formula(source_values, table.multiplier[live], table.formula[live])
        inertia = np.clip(table.inertia[live], self.MIN_INERTIA, 1.0) * self.config.simulation_speed
        np.add.at(deltas, table.target[live], contribution * inertia)
        return deltas

    def apply_stat_deltas(self, state, deltas, rng, result):
        cfg = self.config
        if self.catalog.num_stats == 0:
            return
        reversion = (state.stat_default - state.stat_value) * cfg.mean_reversion
        noise = (np.asarray(rng.random(self.catalog.num_stats)) - 0.5) * cfg.stat_noise * cfg.simulation_speed
        before = state.stat_value.copy()
        state.stat_value[:] = np.clip(before + deltas * cfg.effect_gain + reversion + noise, 0.0, 1.0)

        for s in np.flatnonzero(np.abs(state.stat_value - before) > self.REPORT_THRESHOLD):
            result.stat_changes.append(
                StatChange(self.catalog.stats[s].id, float(before[s]), float(state.stat_value[s])))

    def apply_situation_effects(self, state):
        """Active situations push straight onto stats, after the accumulator."""
        table = self.catalog.situation_effects
        if len(table) == 0:
            return
        live = state.situation_active[table.source]
        if not np.any(live):
            return
        severity = state.situation_severity[table.source[live]]
        contribution = apply_formula(severity, table.multiplier[live], table.formula[live])
        inertia = np.clip(table.inertia[live], self.MIN_INERTIA, 1.0) * self.config.simulation_speed
        np.add.at(state.stat_value, table.target[live],
                  contribution * inertia * self.config.situation_damping)
        np.clip(state.stat_value, 0.0, 1.0, out=state.stat_value)

    def update_situations(self, state, round_number, result):
        if not self.config.enable_situations or self.catalog.num_situations == 0:
            return
        aggregates = situation_aggregates(self.catalog, state.node_values())
        triggered, resolved = self.situations.step(state, aggregates, round_number)
        for sit in triggered:
            state.log(f"Situation {sit.definition_id} TRIGGERED (severity {sit.severity:.3f})")
        for sit in resolved:
            state.log(f"Situation {sit.definition_id} resolved after "
                      f"{round_number - sit.round_activated} rounds")
        result.situations_triggered.extend(triggered)
        result.situations_resolved.extend(resolved)

    def update_voter_groups(self, state, rng, result):
        cat, cfg = self.catalog, self.config
        n = cat.num_groups
        if n == 0:
            return
        values = state.node_values()

        # Media focus multiplies the weight of concerns on its node; the
        # oldest focus on a node wins.
        amplification = np.ones(cat.num_nodes, dtype=np.float64)
        for focus in reversed(state.media_focus):
            flat = cat.flat_index(focus.node_id)
            if flat is not None:
                amplification[flat] = focus.amplification

        links = cat.concerns
        v = values[links.source]
        satisfaction = np.where(cat.concern_desires_high, v, 1.0 - v)
        contribution = (satisfaction - 0.5) * 2.0
        mood = np.bincount(links.owner, weights=contribution * links.weight * amplification[links.source],
                           minlength=n).astype(np.float64)
        weight = np.bincount(links.owner, weights=links.weight, minlength=n).astype(np.float64)

        reactions = cat.voter_reactions
        if len(reactions):
            live = state.situation_active[reactions.owner].astype(np.float64)
            severity = state.situation_severity[reactions.owner]
            mood += np.bincount(reactions.source, weights=reactions.weight * severity * live, minlength=n)
            weight += np.bincount(reactions.source, weights=np.abs(reactions.weight) * live, minlength=n)

        if state.macro is not None:
            mood += self.economic_weight * (state.group_economic_satisfaction - 0.5) * 2.0
            weight += self.economic_weight

        state.group_prev_happiness[:] = state.group_happiness
        safe = np.where(weight > 0, weight, 1.0)
        target = np.clip(mood / safe, -1.0, 1.0)
        blended = lerp(state.group_happiness, target, cfg.happiness_blend)
        state.group_happiness[:] = np.clip(np.where(weight > 0, blended, state.group_happiness), -1.0, 1.0)

        # Very happy or very unhappy voters turn out
        noise = np.asarray(rng.random(n)) * self.TURNOUT_NOISE
        state.group_turnout[:] = np.clip(
            self.TURNOUT_BASE + np.abs(state.group_happiness) * self.TURNOUT_MOOD + noise,
            self.TURNOUT_MIN, self.TURNOUT_MAX)

        mods = cat.population_modifiers
        if len(mods):
            shift = np.bincount(mods.owner, weights=(values[mods.source] - 0.5) * mods.weight,
                                minlength=n).astype(np.float64)
            base = cat.group_base_population
            resized = np.clip(base * (1.0 + shift), base * self.POPULATION_MIN, base * self.POPULATION_MAX)
            state.group_population[:] = np.where(cat.group_has_modifiers, resized, state.group_population)

        for g, group in enumerate(cat.voter_groups):
            result.voter_happiness_changes.append(
                HappinessChange(group.id, float(state.group_prev_happiness[g]), float(state.group_happiness[g])))

        refresh_polling(state, cfg)

    def decay_media_focus(self, state, result):
        kept = []
        for focus in state.media_focus:
            focus.rounds_remaining -= 1
            if focus.rounds_remaining <= 0:
                result.media_decayed.append(focus)
            else:
                focus.amplification = lerp(focus.amplification, 1.0, self.config.media_decay)
                kept.append(focus)
        state.media_focus[:] = kept

    # ---------------------------------------------------------------------- #
    #  Master update                                                          #
    # ---------------------------------------------------------------------- #

    def update(self, state, round_number, rng):
        state.round = round_number
        result = TickResult(round=round_number)

        # 1. Sliders drift toward their targets
        self.transition_policies(state, result)
        result.budget_balance = budget_balance(state)

        # 2-4. Snapshot, accumulate from the snapshot, apply
        self.snapshot_stats(state)
        deltas = self.accumulate_effects(state, round_number)
        self.apply_stat_deltas(state, deltas, rng, result)

        # 5. Situation layer on top of the stats
        self.apply_situation_effects(state)

        # 6. Hysteresis checks
        self.update_situations(state, round_number, result)

        # 7. Voters react
        self.update_voter_groups(state, rng, result)

        # 8. Media cycle cools off
        self.decay_media_focus(state, result)

        state.record_snapshot()
        return result


def tick(state, round_number, config=None, rng=None):
    """Advance ``state`` by one round. Uses the state's own RNG by default."""
    propagator = EffectPropagator(state.catalog, config)
    return propagator.update(state, round_number, rng if rng is not None else state.rng)
