"""Vote model: party utilities per voter group and their conversion to shares.

    U(group, party) = a * IdeologyMatch + b * PerformanceCredit + c * Incumbency + noise

a is the group's partisanship, b = 1 - a, c the incumbency weight.
IdeologyMatch is 1 for a perfect match and 0 at maximal distance on the
[-1,1] x [-1,1] ideology plane.  Government is credited with the group's
satisfaction, the main opposition with its dissatisfaction, and everyone
else gets a neutral 0.5.
"""
import numpy as np

from .config import SimConfig
from .macro import SECTORS
from .rng import clamp, lerp


IDEOLOGY_SPAN = 4.0        # max |d_social| + |d_econ| on the [-1,1]^2 plane
UTILITY_NOISE = 0.05
CAMPAIGN_CAP = 0.4         # campaign influence never exceeds this utility
ATTACK_BACKLASH = 0.25     # share of an attack that rebounds on the attacker
NEUTRAL_SATISFACTION = 0.5
ECONOMY_NOISE = 0.01       # +-1 point on a 0-100 scale

# (bad, good): bad maps to 0, good to 1, linear in between and clamped.
# Where bad > good the indicator is inverted.
UTILITY_BANDS = {
    "gdp_growth": (-2.0, 5.0),
    "unemployment": (15.0, 3.0),
    "inflation": (10.0, 1.0),
    "consumer_confidence": (20.0, 80.0),
    "business_confidence": (20.0, 80.0),
    "budget_balance": (-6.0, 2.0),
}
UTILITY_BANDS.update((sector, (20.0, 80.0)) for sector in SECTORS)
ECONOMIC_INDICATORS = tuple(UTILITY_BANDS)


def satisfaction(happiness):
    """Map happiness in [-1,1] to satisfaction in [0,1]."""
    return (np.asarray(happiness, dtype=np.float64) + 1.0) / 2.0


def compute_utilities(catalog, happiness, parties, rng=None, loyalty=None, incumbency_weight=0.1):
    """Utility matrix of shape (groups, parties).

    Noise is drawn row-major (group by group) when ``rng`` is given.  A
    ``loyalty`` matrix adds the campaign term, capped per group by its
    persuadability.
    """
    n_groups, n_parties = catalog.num_groups, len(parties)
    if n_parties == 0:
        return np.zeros((n_groups, 0))

    social = np.array([p.social_position for p in parties], dtype=np.float64)
    economic = np.array([p.economic_position for p in parties], dtype=np.float64)
    governing = np.array([p.is_government for p in parties], dtype=bool)
    opposition = np.array([p.is_main_opposition for p in parties], dtype=bool) & ~governing
    seat_share = np.array([p.seat_share for p in parties], dtype=np.float64)

    distance = (np.abs(catalog.group_social[:, None] - social[None, :])
                + np.abs(catalog.group_economic[:, None] - economic[None, :]))
    ideology = 1.0 - distance / IDEOLOGY_SPAN

    sat = satisfaction(happiness)[:, None]
    performance = np.where(governing[None, :], sat, np.where(opposition[None, :], 1.0 - sat, 0.5))
    incumbency = np.where(governing, seat_share, 0.0)[None, :]

    alpha = catalog.group_partisanship[:, None]
    utilities = alpha * ideology + (1.0 - alpha) * performance + incumbency_weight * incumbency

    if loyalty is not None:
        campaign = np.asarray(loyalty, dtype=np.float64) * catalog.group_persuadability[:, None]
        utilities = utilities + np.clip(campaign, 0.0, CAMPAIGN_CAP)
    if rng is not None:
        utilities = utilities + (np.asarray(rng.random((n_groups, n_parties))) - 0.5) * UTILITY_NOISE
    return utilities


# ---------------------------------------------------------------------- #
#  Share conversion                                                       #
# ---------------------------------------------------------------------- #

def _uniform_rows(matrix, ok):
    n = matrix.shape[1]
    return np.where(ok[:, None], matrix, 1.0 / n if n else 0.0)


def softmax_shares(utilities, temperature=0.3):
    """Multinomial logit per row; lower temperature is more decisive."""
    u = np.asarray(utilities, dtype=np.float64)
    if u.size == 0:
        return u.copy()
    temperature = max(float(temperature), 1e-6)
    exps = np.exp((u - u.max(axis=1, keepdims=True)) / temperature)
    sums = exps.sum(axis=1)
    ok = np.isfinite(sums) & (sums > 0)
    safe = np.where(ok, sums, 1.0)[:, None]
    return _uniform_rows(exps / safe, ok)


def normalized_shares(scores):
    """Sum-to-one of max(0, score); all-zero rows split evenly."""
    s = np.maximum(np.asarray(scores, dtype=np.float64), 0.0)
    if s.size == 0:
        return s
    sums = s.sum(axis=1)
    ok = sums > 0
    safe = np.where(ok, sums, 1.0)[:, None]
    return _uniform_rows(s / safe, ok)


SHARE_CONVERTERS = {
    "softmax": lambda matrix, temperature: softmax_shares(matrix, temperature),
    "normalized": lambda matrix, temperature: normalized_shares(matrix),
}


def shares_from_utilities(matrix, temperature=0.3, strategy="softmax"):
    try:
        converter = SHARE_CONVERTERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown share strategy: {strategy!r}") from None
    return converter(matrix, temperature)


def national_vote_share(shares, population, turnout):
    """Aggregate group shares by population x turnout, renormalised to 1."""
    shares = np.asarray(shares, dtype=np.float64)
    n_parties = shares.shape[1] if shares.ndim == 2 else 0
    if n_parties == 0:
        return np.zeros(0)
    weight = np.asarray(population, dtype=np.float64) * np.asarray(turnout, dtype=np.float64)
    votes = (shares * weight[:, None]).sum(axis=0)
    total = votes.sum()
    if total <= 0:
        return np.full(n_parties, 1.0 / n_parties)
    return votes / total


def polling_shares(state, config=None):
    """Noise-free national share per party in party order."""
    config = config or SimConfig()
    utilities = compute_utilities(state.catalog, state.group_happiness, state.parties,
                                  loyalty=state.group_loyalty,
                                  incumbency_weight=config.incumbency_weight)
    shares = shares_from_utilities(utilities, config.logit_temperature, config.share_strategy)
    return national_vote_share(shares, state.group_population, state.group_turnout)


def refresh_polling(state, config=None):
    """Keep the polling numbers on the state for display."""
    if not state.parties:
        return
    state.party_polling = polling_shares(state, config)


# ---------------------------------------------------------------------- #
#  Economic satisfaction                                                  #
# ---------------------------------------------------------------------- #

def economic_utility(value, bad, good):
    """Place an indicator on its band: 0 at ``bad``, 1 at ``good``."""
    value, bad, good = (np.asarray(a, dtype=np.float64) for a in (value, bad, good))
    span = good - bad
    flat = span == 0
    t = (value - bad) / np.where(flat, 1.0, span)
    return np.where(flat, NEUTRAL_SATISFACTION, np.clip(t, 0.0, 1.0))


def economic_priority_matrix(catalog, indicators=ECONOMIC_INDICATORS):
    """(groups, indicators) priority weights; names without a band are ignored."""
    column = {name: i for i, name in enumerate(indicators)}
    matrix = np.zeros((catalog.num_groups, len(indicators)), dtype=np.float64)
    for g, group in enumerate(catalog.voter_groups):
        for name, weight in group.economic_priorities:
            if name in column:
                matrix[g, column[name]] += weight
    return matrix


def raw_economic_satisfaction(catalog, economy):
    """Priority-weighted band utility per group for an indicator mapping.

    Groups with no priority the economy reports on hold at neutral.
    """
    indicators = [name for name in ECONOMIC_INDICATORS if name in economy]
    values = np.array([economy[name] for name in indicators], dtype=np.float64)
    bad = np.array([UTILITY_BANDS[name][0] for name in indicators], dtype=np.float64)
    good = np.array([UTILITY_BANDS[name][1] for name in indicators], dtype=np.float64)
    priorities = economic_priority_matrix(catalog, indicators)
    weight = priorities.sum(axis=1)
    total = priorities @ economic_utility(values, bad, good)
    return np.where(weight > 0, total / np.where(weight > 0, weight, 1.0), NEUTRAL_SATISFACTION)


def update_economic_satisfaction(state, rng=None):
    """Move each group's economic satisfaction toward the current economy.

        S(t) = v * S_raw + (1 - v) * S(t-1)

    with ``v`` the group's volatility, so calm groups change their minds
    slowly.  A no-op without a macro model.
    """
    n = state.catalog.num_groups
    if state.macro is None or n == 0:
        return False
    raw = raw_economic_satisfaction(state.catalog, state.macro.get_state().as_dict())
    smoothed = lerp(state.group_economic_satisfaction, raw, state.catalog.group_volatility)
    if rng is not None:
        smoothed = smoothed + (np.asarray(rng.random(n)) - 0.5) * 2.0 * ECONOMY_NOISE
    state.group_economic_satisfaction[:] = np.clip(smoothed, 0.0, 1.0)
    return True


# ---------------------------------------------------------------------- #
#  Aggregate indicators                                                   #
# ---------------------------------------------------------------------- #

def national_satisfaction(state):
    """Population-weighted satisfaction in [0,1]; neutral with nobody to ask."""
    population = state.group_population
    total = population.sum()
    if total <= 0:
        return NEUTRAL_SATISFACTION
    return float((satisfaction(state.group_happiness) * population).sum() / total)


def swing_prediction(state, config=None):
    """Percentage points each party polls above (or below) its seat share."""
    if not state.parties:
        return {}
    shares = polling_shares(state, config)
    return {party.id: float((share - party.seat_share) * 100.0)
            for party, share in zip(state.parties, shares)}


def approval_rating(state, party_id):
    """Happiness weighted by each group's ideological closeness and size.

    Closeness is averaged over both axes, 1 for a perfect match and 0 at
    opposite ends.  Returns a value in [-1,1], 0 when no group has weight,
    or None for an unknown party.
    """
    p = state.party_index(party_id)
    if p is None:
        return None
    party, cat = state.parties[p], state.catalog
    social = 1.0 - np.abs(party.social_position - cat.group_social) / 2.0
    economic = 1.0 - np.abs(party.economic_position - cat.group_economic) / 2.0
    weight = (social + economic) / 2.0 * state.group_population
    total = weight.sum()
    if total <= 0:
        return 0.0
    return clamp(float((state.group_happiness * weight).sum() / total), -1.0, 1.0)


# ---------------------------------------------------------------------- #
#  Campaign actions                                                       #
# ---------------------------------------------------------------------- #

def _loyalty_cell(state, party_id, group_id):
    g = state.catalog.group_index.get(group_id)
    p = state.party_index(party_id)
    if g is None or p is None:
        return None
    return g, p


def apply_campaign(state, party_id, group_id, amount):
    """Raise a party's loyalty with one group. Unknown ids are ignored."""
    cell = _loyalty_cell(state, party_id, group_id)
    if cell is None:
        return False
    state.group_loyalty[cell] = clamp(state.group_loyalty[cell] + amount, 0.0, 1.0)
    state.log(f"Campaign: {party_id} -> {group_id} loyalty {state.group_loyalty[cell]:.2f}")
    return True


def apply_attack(state, party_id, target_party_id, group_id, amount):
    """Erode a rival's loyalty with a group; some of it rebounds."""
    target = _loyalty_cell(state, target_party_id, group_id)
    attacker = _loyalty_cell(state, party_id, group_id)
    if target is None or attacker is None or target == attacker:
        return False
    state.group_loyalty[target] = clamp(state.group_loyalty[target] - amount, 0.0, 1.0)
    state.group_loyalty[attacker] = clamp(state.group_loyalty[attacker] - amount * ATTACK_BACKLASH, 0.0, 1.0)
    state.log(f"Attack: {party_id} vs {target_party_id} among {group_id}")
    return True


def decay_loyalty(state, factor):
    state.group_loyalty *= clamp(factor, 0.0, 1.0)
