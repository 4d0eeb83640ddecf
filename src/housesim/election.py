from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import SimConfig
from .rng import clamp
from .voters import compute_utilities, decay_loyalty, national_vote_share, shares_from_utilities


@dataclass(frozen=True)
class SeatChange:
    seat_id: str
    from_id: Optional[str]
    to_id: str


@dataclass
class ElectionSimResult:
    seat_changes: list = field(default_factory=list)
    vote_share: dict = field(default_factory=dict)       # party -> national share
    group_votes: dict = field(default_factory=dict)      # group -> party -> share
    swing_seats: int = 0
    seat_counts: dict = field(default_factory=dict)
    margins: dict = field(default_factory=dict)          # seat -> winning score gap
    new_leader_id: Optional[str] = None


def resolve_election(state, catalog=None, rng=None, config=None):
    """Resolve a general election seat by seat without touching ``state``.

    Parties are ranked by id, so every tie -- on a seat score or on the
    final seat count -- goes to the lexicographically smallest party id.
    """
    catalog = catalog or state.catalog
    rng = rng if rng is not None else state.rng
    config = config or SimConfig()
    result = ElectionSimResult(new_leader_id=state.leader_id)
    if not state.parties:
        return result

    order = sorted(range(len(state.parties)), key=lambda i: state.parties[i].id)
    parties = [state.parties[i] for i in order]
    party_ids = [p.id for p in parties]
    n_parties = len(parties)

    # 1. Group shares -> national share
    utilities = compute_utilities(catalog, state.group_happiness, parties, rng,
                                  loyalty=state.group_loyalty[:, order],
                                  incumbency_weight=config.incumbency_weight)
    shares = shares_from_utilities(utilities, config.logit_temperature, config.share_strategy)
    national = national_vote_share(shares, state.group_population, state.group_turnout)

    result.vote_share = {pid: float(share) for pid, share in zip(party_ids, national)}
    result.group_votes = {
        group.id: {pid: float(shares[g, k]) for k, pid in enumerate(party_ids)}
        for g, group in enumerate(catalog.voter_groups)
    }

    # 2. Every seat independently
    n_seats = len(state.seats)
    if n_seats == 0:
        result.seat_counts = {pid: 0 for pid in party_ids}
        return result

    scores = np.tile(national * config.seat_national_weight, (n_seats, 1))
    scores += (catalog.seat_demographics @ shares) * config.seat_demographic_weight
    position = {pid: k for k, pid in enumerate(party_ids)}
    for s, seat in enumerate(state.seats):
        k = position.get(seat.owner_id)
        if k is not None:
            scores[s, k] += seat.margin * config.seat_incumbency_weight
    scores += np.asarray(rng.random((n_seats, n_parties))) * config.seat_noise

    winners = np.argmax(scores, axis=1)     # first maximum = smallest id
    ranked = np.sort(scores, axis=1)
    gaps = ranked[:, -1] - ranked[:, -2] if n_parties > 1 else ranked[:, -1]

    for s, seat in enumerate(state.seats):
        winner = party_ids[winners[s]]
        result.margins[seat.id] = clamp(float(gaps[s]), 0.0, 100.0)
        if winner != seat.owner_id:
            result.seat_changes.append(SeatChange(seat.id, seat.owner_id, winner))
    result.swing_seats = len(result.seat_changes)

    # 3. Tally including this election's changes
    counts = np.bincount(winners, minlength=n_parties)
    result.seat_counts = {pid: int(c) for pid, c in zip(party_ids, counts)}
    result.new_leader_id = party_ids[int(np.argmax(counts))]
    return result


def apply_election_result(state, result, config=None):
    """Orchestrator helper: commit an election to the authoritative state."""
    config = config or SimConfig()
    by_id = {seat.id: seat for seat in state.seats}
    for change in result.seat_changes:
        seat = by_id.get(change.seat_id)
        if seat is not None:
            seat.owner_id = change.to_id
    for seat_id, margin in result.margins.items():
        if seat_id in by_id:
            by_id[seat_id].margin = margin

    counts = state.seat_counts()
    total = max(len(state.seats), 1)
    state.leader_id = result.new_leader_id
    ranked = sorted(counts, key=lambda pid: (-counts[pid], pid))
    opposition = next((pid for pid in ranked if pid != state.leader_id), None)
    for party in state.parties:
        party.seat_share = counts.get(party.id, 0) / total
        party.is_government = party.id == state.leader_id
        party.is_main_opposition = party.id == opposition

    decay_loyalty(state, config.loyalty_decay)
    state.log(f"Election: {result.swing_seats} seats changed hands, "
              f"{state.leader_id} leads with {counts.get(state.leader_id, 0)} seats")
    state.record_snapshot(election=True)
