from dataclasses import dataclass, fields, replace


SHARE_STRATEGIES = ("softmax", "normalized")


@dataclass(frozen=True)
class SimConfig:
    """Per-room tuning knobs for the tick and the election resolver.

    Defaults are the calibrated values the game ships with; a room may
    override any of them through ``SimConfig.from_dict``.
    """
    # --- Propagation ---
    simulation_speed: float = 1.0
    effect_gain: float = 0.15          # share of the accumulated delta applied per tick
    mean_reversion: float = 0.02       # pull of every stat toward its default
    stat_noise: float = 0.01           # peak-to-peak noise on stats
    situation_damping: float = 0.1     # situations act on stats at 10% strength
    enable_situations: bool = True

    # --- Voters / media ---
    happiness_blend: float = 0.3       # voters never snap to their raw mood
    media_decay: float = 0.3
    enable_media_cycle: bool = True
    loyalty_decay: float = 0.5         # loyalty kept across an election

    # --- Player input ---
    max_policy_changes: int = 3

    # --- Elections ---
    election_interval: int = 8
    logit_temperature: float = 0.3
    share_strategy: str = "softmax"
    incumbency_weight: float = 0.1
    seat_national_weight: float = 50.0
    seat_demographic_weight: float = 30.0
    seat_incumbency_weight: float = 0.3
    seat_noise: float = 5.0

    # --- Telemetry ---
    telemetry_interval: int = 10

    def __post_init__(self):
        if self.share_strategy not in SHARE_STRATEGIES:
            raise ValueError(f"Unknown share strategy: {self.share_strategy!r}")

    @classmethod
    def from_dict(cls, overrides):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return replace(cls(), **dict(overrides))

    def is_election_round(self, round_number):
        return self.election_interval > 0 and round_number > 0 \
            and round_number % self.election_interval == 0
