"""Built-in starter content for headless runs and tests.

A trimmed-down slice of the full content tables: enough policies, stats
and situations for every link type to be exercised, four voter groups and
a twelve-seat chamber.
"""
from .catalog import NodeCatalog
from .state import PartyProfile


def fx(target_id, multiplier, formula="linear", delay=0, inertia=0.3):
    return {"target_id": target_id, "multiplier": multiplier, "formula": formula,
            "delay": delay, "inertia": inertia}


def sample_catalog_data():
    policies = [
        {"id": "income_tax", "category": "tax", "name": "Income Tax", "current_value": 0.5,
         "cost_per_point": -0.4, "implementation_delay": 2,
         "ideological_bias": {"social": 0.0, "economic": 0.6},
         "effects": [fx("gdp_growth", -0.2, "sqrt", 0, 0.4),
                     fx("inequality", -0.3, "linear", 0, 0.3)]},
        {"id": "public_health", "category": "welfare", "name": "Public Health Funding",
         "current_value": 0.5, "cost_per_point": 0.35, "implementation_delay": 3,
         "ideological_bias": {"social": 0.4, "economic": 0.5},
         "effects": [fx("health", 0.4, "sqrt", 1, 0.3)]},
        {"id": "police_funding", "category": "law", "name": "Police Funding",
         "current_value": 0.4, "cost_per_point": 0.2, "implementation_delay": 2,
         "ideological_bias": {"social": -0.6, "economic": 0.0},
         "effects": [fx("crime_rate", -0.35, "linear", 0, 0.4)]},
        {"id": "carbon_tax", "category": "environment", "name": "Carbon Tax",
         "current_value": 0.2, "cost_per_point": -0.25, "implementation_delay": 4,
         "ideological_bias": {"social": 0.5, "economic": 0.4},
         "effects": [fx("emissions", -0.5, "linear", 1, 0.3),
                     fx("gdp_growth", -0.1, "linear", 0, 0.3)]},
        {"id": "stimulus", "category": "economy", "name": "Stimulus Spending",
         "current_value": 0.3, "cost_per_point": 0.5, "implementation_delay": 1,
         "ideological_bias": {"social": 0.0, "economic": 0.7},
         "effects": [fx("gdp_growth", 0.3, "threshold", 0, 0.5),
                     fx("consumer_confidence", 0.2, "linear", 0, 0.4)]},
    ]
    stats = [
        {"id": "gdp_growth", "name": "GDP Growth", "value": 0.55, "display_min": -5,
         "display_max": 8, "is_good": True,
         "effects": [fx("unemployment", -0.4, "linear", 0, 0.5),
                     fx("consumer_confidence", 0.3, "linear", 0, 0.4)]},
        {"id": "unemployment", "name": "Unemployment", "value": 0.25, "display_min": 0,
         "display_max": 20, "is_good": False,
         "effects": [fx("crime_rate", 0.2, "linear", 0, 0.5),
                     fx("consumer_confidence", -0.3, "linear", 0, 0.4)]},
        {"id": "consumer_confidence", "name": "Consumer Confidence", "value": 0.5, "is_good": True,
         "effects": [fx("gdp_growth", 0.2, "linear", 0, 0.4)]},
        {"id": "crime_rate", "name": "Crime Rate", "value": 0.3, "is_good": False},
        {"id": "health", "name": "Health", "value": 0.6, "is_good": True},
        {"id": "inequality", "name": "Inequality", "value": 0.45, "is_good": False,
         "effects": [fx("crime_rate", 0.15, "squared", 0, 0.3)]},
        {"id": "emissions", "name": "Emissions", "value": 0.7, "is_good": False},
    ]
    situations = [
        {"id": "recession", "name": "Recession", "severity_type": "crisis",
         "trigger_threshold": 0.65, "deactivate_threshold": 0.45,
         "inputs": [{"source_id": "unemployment", "weight": 0.6},
                    {"source_id": "inequality", "weight": 0.4}],
         "effects": [fx("consumer_confidence", -0.25, "linear", 0, 0.3),
                     fx("unemployment", 0.2, "linear", 0, 0.4)],
         "voter_reactions": [{"group_id": "workers", "delta": -0.25},
                             {"group_id": "business_owners", "delta": -0.2}]},
        {"id": "crime_wave", "name": "Crime Wave", "severity_type": "problem",
         "trigger_threshold": 0.6, "deactivate_threshold": 0.4,
         "inputs": [{"source_id": "crime_rate", "weight": 1.0}],
         "effects": [fx("consumer_confidence", -0.1)],
         "voter_reactions": [{"group_id": "retirees", "delta": -0.3}]},
        {"id": "economic_boom", "name": "Economic Boom", "severity_type": "boom",
         "trigger_threshold": 0.7, "deactivate_threshold": 0.5,
         "inputs": [{"source_id": "gdp_growth", "weight": 0.7},
                    {"source_id": "consumer_confidence", "weight": 0.3}],
         "effects": [fx("unemployment", -0.2)],
         "voter_reactions": [{"group_id": "business_owners", "delta": 0.3}]},
    ]
    voter_groups = [
        {"id": "workers", "name": "Workers", "base_population": 0.35, "persuadability": 0.5,
         "social_leaning": 0.1, "economic_leaning": 0.6, "partisanship": 0.4,
         "concerns": [{"node_id": "unemployment", "weight": 1.0, "desires_high": False},
                      {"node_id": "inequality", "weight": 0.6, "desires_high": False}],
         "population_modifiers": [{"source_id": "unemployment", "weight": 0.2}],
         "economic_priorities": {"unemployment": 1.0, "inflation": 0.6, "manufacturing": 0.4},
         "volatility": 0.35},
        {"id": "business_owners", "name": "Business Owners", "base_population": 0.15,
         "persuadability": 0.3, "social_leaning": -0.2, "economic_leaning": -0.7,
         "partisanship": 0.5,
         "concerns": [{"node_id": "gdp_growth", "weight": 1.0, "desires_high": True},
                      {"node_id": "income_tax", "weight": 0.8, "desires_high": False}],
         "economic_priorities": {"gdp_growth": 0.8, "business_confidence": 1.0, "budget_balance": 0.5},
         "volatility": 0.25},
        {"id": "retirees", "name": "Retirees", "base_population": 0.25, "persuadability": 0.2,
         "social_leaning": -0.5, "economic_leaning": 0.0, "partisanship": 0.6,
         "concerns": [{"node_id": "health", "weight": 1.0, "desires_high": True},
                      {"node_id": "crime_rate", "weight": 0.7, "desires_high": False}],
         "economic_priorities": {"inflation": 1.0, "healthcare": 0.8},
         "volatility": 0.15},
        {"id": "environmentalists", "name": "Environmentalists", "base_population": 0.25,
         "persuadability": 0.6, "social_leaning": 0.8, "economic_leaning": 0.3,
         "partisanship": 0.5,
         "concerns": [{"node_id": "emissions", "weight": 1.0, "desires_high": False},
                      {"node_id": "carbon_tax", "weight": 0.5, "desires_high": True}],
         "economic_priorities": {"energy": 0.6, "education": 0.4},
         "volatility": 0.3},
    ]
    mixes = {
        "urban": (("workers", 0.4), ("business_owners", 0.2), ("environmentalists", 0.4)),
        "suburban": (("workers", 0.35), ("business_owners", 0.2), ("retirees", 0.3),
                     ("environmentalists", 0.15)),
        "rural": (("workers", 0.3), ("business_owners", 0.1), ("retirees", 0.6)),
    }
    seats = []
    for i in range(12):
        mix = ("urban", "suburban", "rural")[i % 3]
        seats.append({
            "id": f"seat_{i + 1:02d}",
            "region": ("NSW", "VIC", "QLD", "WA")[i % 4],
            "demographics": [{"group_id": g, "weight": w} for g, w in mixes[mix]],
            "owner_id": ("labor", "coalition", "greens")[i % 3] if i < 9 else None,
            "margin": 40.0 + (i % 4) * 5.0,
        })
    return {"policies": policies, "stats": stats, "situations": situations,
            "voter_groups": voter_groups, "seats": seats}


def sample_catalog():
    return NodeCatalog.from_dict(sample_catalog_data())


def sample_parties():
    return [
        PartyProfile("coalition", social_position=-0.4, economic_position=-0.5, is_government=True),
        PartyProfile("greens", social_position=0.8, economic_position=0.4),
        PartyProfile("labor", social_position=0.3, economic_position=0.5, is_main_opposition=True),
    ]
