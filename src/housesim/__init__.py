"""Deterministic policy-web simulation core for a parliamentary strategy game."""
from .catalog import NodeCatalog
from .config import SimConfig
from .election import ElectionSimResult, SeatChange, apply_election_result, resolve_election
from .engine import EffectPropagator, TickResult, tick
from .macro import MacroModel
from .media import generate_media_focus
from .policies import apply_policy_adjustments, budget_balance, ideology_score
from .state import GameSimState, PartyProfile, apply_shock, get_history, initialize
from .validation import CatalogValidationError, validate_catalog
from .voters import approval_rating, national_satisfaction, swing_prediction, update_economic_satisfaction

__all__ = [
    "NodeCatalog",
    "SimConfig",
    "ElectionSimResult",
    "SeatChange",
    "apply_election_result",
    "resolve_election",
    "EffectPropagator",
    "TickResult",
    "tick",
    "MacroModel",
    "generate_media_focus",
    "apply_policy_adjustments",
    "budget_balance",
    "ideology_score",
    "GameSimState",
    "PartyProfile",
    "apply_shock",
    "get_history",
    "initialize",
    "CatalogValidationError",
    "validate_catalog",
    "approval_rating",
    "national_satisfaction",
    "swing_prediction",
    "update_economic_satisfaction",
]
