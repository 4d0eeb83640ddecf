import argparse
import json

from .config import SimConfig
from .content import sample_catalog, sample_parties
from .election import apply_election_result, resolve_election
from .engine import EffectPropagator
from .media import generate_media_focus
from .state import initialize
from .telemetry import TelemetryWriter
from .validation import validate_catalog
from .voters import national_satisfaction, update_economic_satisfaction


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a headless policy-web simulation")
    parser.add_argument("--rounds", type=int, default=40, help="Rounds to simulate")
    parser.add_argument("--seed", default="1", help="Room seed (integer or string)")
    parser.add_argument("--config", help="JSON file of SimConfig overrides")
    parser.add_argument("--telemetry", default="sim_audit.csv", help="CSV audit path")
    parser.add_argument("--economy", action="store_true", help="Run the macro model alongside")
    parser.add_argument("--quiet", action="store_true", help="Only print the final summary")
    return parser.parse_args(argv)


def _load_config(path):
    if not path:
        return SimConfig()
    with open(path) as f:
        return SimConfig.from_dict(json.load(f))


def _seed(raw):
    try:
        return int(raw)
    except ValueError:
        return raw


def run(rounds, seed=1, config=None, telemetry=None, with_economy=False, echo=None):
    """Play ``rounds`` rounds with the sample content; returns the final state."""
    config = config or SimConfig()
    catalog = sample_catalog()
    state = initialize(catalog, seed=seed, parties=sample_parties(), with_economy=with_economy)
    propagator = EffectPropagator(catalog, config)

    for round_number in range(1, rounds + 1):
        propagator.update(state, round_number, state.rng)
        if state.macro is not None:
            state.macro.tick()
            update_economic_satisfaction(state, state.rng)
        generate_media_focus(state, config, state.rng)

        if config.is_election_round(round_number):
            result = resolve_election(state, catalog, state.rng, config)
            apply_election_result(state, result, config)
        if telemetry is not None:
            telemetry.log_telemetry(state, round_number)
        if echo is not None:
            while state.log_messages:
                echo(state.log_messages.popleft())
    return state


def _print_summary(state):
    print(f"rounds: {state.round}  leader: {state.leader_id}")
    print("seats: " + ", ".join(f"{pid}={n}" for pid, n in sorted(state.seat_counts().items())))
    print(f"national satisfaction: {national_satisfaction(state):.2f}")
    for stat, value in zip(state.catalog.stats, state.stat_value):
        print(f"  {stat.name:<22} {stat.display_value(value):7.2f}")
    for sit in state.active_situations():
        print(f"  ACTIVE {sit.definition_id} severity {sit.severity:.2f}")
    if state.macro is not None:
        composite, rating = state.macro.summary()
        print(f"economy: {composite:.1f} ({rating})")


def main(argv=None):
    args = _parse_args(argv)
    config = _load_config(args.config)
    for issue in validate_catalog(sample_catalog()):
        print(f"content warning: {issue}")

    telemetry = TelemetryWriter(args.telemetry, config.telemetry_interval) if args.telemetry else None
    state = run(args.rounds, seed=_seed(args.seed), config=config, telemetry=telemetry,
                with_economy=args.economy, echo=None if args.quiet else print)
    _print_summary(state)


if __name__ == "__main__":
    main()
