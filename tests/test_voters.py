import unittest
from unittest.mock import Mock

import numpy as np

from support import FixedRng

from housesim.catalog import NodeCatalog
from housesim.state import PartyProfile, initialize
from housesim.voters import (apply_attack, apply_campaign, approval_rating, compute_utilities,
                             decay_loyalty, economic_utility, national_satisfaction,
                             national_vote_share, normalized_shares, polling_shares,
                             raw_economic_satisfaction, shares_from_utilities, softmax_shares,
                             swing_prediction, update_economic_satisfaction)


def _two_group_catalog():
    return NodeCatalog.from_dict({
        "voter_groups": [
            {"id": "left", "social_leaning": 0.8, "economic_leaning": 0.6, "partisanship": 1.0,
             "persuadability": 0.5, "base_population": 2.0},
            {"id": "floaters", "partisanship": 0.0, "persuadability": 1.0},
        ],
    })


def _parties():
    return [
        PartyProfile("gov", social_position=-0.5, economic_position=-0.5,
                     is_government=True, seat_share=0.6),
        PartyProfile("opp", social_position=0.8, economic_position=0.6,
                     is_main_opposition=True, seat_share=0.4),
    ]


class TestVoteShares(unittest.TestCase):

    def test_shares_sum_to_one_for_every_strategy(self):
        utilities = np.random.default_rng(0).normal(size=(6, 4))
        for strategy in ("softmax", "normalized"):
            shares = shares_from_utilities(utilities, 0.3, strategy)
            np.testing.assert_allclose(shares.sum(axis=1), np.ones(6), atol=1e-9)
            self.assertTrue(np.all(shares >= 0.0))

    def test_softmax_survives_extreme_utilities(self):
        shares = softmax_shares(np.array([[1e6, 0.0, -1e6]]), temperature=1e-9)
        self.assertTrue(np.all(np.isfinite(shares)))
        np.testing.assert_allclose(shares, [[1.0, 0.0, 0.0]])

    def test_all_nonpositive_scores_split_evenly(self):
        shares = normalized_shares(np.array([[-1.0, -2.0, 0.0, -0.5]]))
        np.testing.assert_allclose(shares, [[0.25, 0.25, 0.25, 0.25]])

    def test_unknown_strategy_raises(self):
        with self.assertRaises(ValueError):
            shares_from_utilities(np.zeros((1, 2)), strategy="dhondt")

    def test_national_share_weights_population_and_turnout(self):
        shares = np.array([[1.0, 0.0], [0.0, 1.0]])
        national = national_vote_share(shares, population=[3.0, 1.0], turnout=[0.5, 0.5])
        np.testing.assert_allclose(national, [0.75, 0.25])
        self.assertAlmostEqual(national.sum(), 1.0, places=9)

    def test_national_share_falls_back_to_uniform(self):
        national = national_vote_share(np.array([[0.7, 0.3]]), population=[0.0], turnout=[0.6])
        np.testing.assert_allclose(national, [0.5, 0.5])


class TestUtilities(unittest.TestCase):

    def test_ideologues_follow_ideology_and_floaters_follow_performance(self):
        catalog = _two_group_catalog()
        happiness = np.array([0.0, 1.0])
        u = compute_utilities(catalog, happiness, _parties(), incumbency_weight=0.0)

        # Perfect ideological match for the left group
        self.assertAlmostEqual(u[0, 1], 1.0)
        self.assertLess(u[0, 0], u[0, 1])
        # Fully satisfied floaters credit the government
        self.assertAlmostEqual(u[1, 0], 1.0)
        self.assertAlmostEqual(u[1, 1], 0.0)

    def test_incumbency_bonus_uses_seat_share(self):
        catalog = _two_group_catalog()
        happiness = np.zeros(2)
        base = compute_utilities(catalog, happiness, _parties(), incumbency_weight=0.0)
        boosted = compute_utilities(catalog, happiness, _parties(), incumbency_weight=0.1)
        np.testing.assert_allclose(boosted[:, 0] - base[:, 0], [0.06, 0.06])
        np.testing.assert_allclose(boosted[:, 1], base[:, 1])

    def test_campaign_term_is_capped(self):
        catalog = _two_group_catalog()
        happiness = np.zeros(2)
        loyalty = np.array([[0.0, 0.5], [0.0, 1.0]])
        base = compute_utilities(catalog, happiness, _parties())
        campaigned = compute_utilities(catalog, happiness, _parties(), loyalty=loyalty)
        np.testing.assert_allclose(campaigned[:, 1] - base[:, 1], [0.25, 0.4])

    def test_centred_noise_vanishes_at_half(self):
        catalog = _two_group_catalog()
        happiness = np.zeros(2)
        np.testing.assert_allclose(
            compute_utilities(catalog, happiness, _parties(), rng=FixedRng(0.5)),
            compute_utilities(catalog, happiness, _parties()))

    def test_no_parties_gives_empty_matrix(self):
        u = compute_utilities(_two_group_catalog(), np.zeros(2), [])
        self.assertEqual(u.shape, (2, 0))


class TestCampaignActions(unittest.TestCase):

    def setUp(self):
        self.state = initialize(_two_group_catalog(), seed=1, parties=_parties())

    def test_campaign_raises_and_clamps_loyalty(self):
        self.assertTrue(apply_campaign(self.state, "opp", "floaters", 0.7))
        self.assertTrue(apply_campaign(self.state, "opp", "floaters", 0.7))
        self.assertEqual(self.state.group_loyalty[1, 1], 1.0)

    def test_campaign_with_unknown_ids_is_ignored(self):
        self.assertFalse(apply_campaign(self.state, "nobody", "floaters", 0.5))
        self.assertFalse(apply_campaign(self.state, "opp", "nowhere", 0.5))
        self.assertEqual(self.state.group_loyalty.sum(), 0.0)

    def test_attack_hurts_target_and_rebounds(self):
        self.state.group_loyalty[0, :] = 0.8
        self.assertTrue(apply_attack(self.state, "gov", "opp", "left", 0.4))
        self.assertAlmostEqual(self.state.group_loyalty[0, 1], 0.4)
        self.assertAlmostEqual(self.state.group_loyalty[0, 0], 0.7)

    def test_loyalty_decay(self):
        self.state.group_loyalty[:] = 0.8
        decay_loyalty(self.state, 0.5)
        np.testing.assert_allclose(self.state.group_loyalty, 0.4)


def _economy_catalog():
    return NodeCatalog.from_dict({
        "voter_groups": [
            {"id": "workers", "volatility": 0.5,
             "economic_priorities": {"unemployment": 1.0, "inflation": 1.0}},
            {"id": "savers", "economic_priorities": {"interest_rate": 1.0}},
            {"id": "investors", "volatility": 1.0,
             "economic_priorities": {"gdp_growth": 2.0, "technology": 1.0}},
        ],
    })


ECONOMY = {"unemployment": 9.0, "inflation": 1.0, "gdp_growth": 5.0,
           "technology": 50.0, "interest_rate": 3.0}


class TestEconomicSatisfaction(unittest.TestCase):

    def test_bands_map_bad_to_zero_and_good_to_one(self):
        np.testing.assert_allclose(economic_utility([-2.0, 1.5, 5.0, 9.0], -2.0, 5.0),
                                   [0.0, 0.5, 1.0, 1.0])
        # inverted band: lower unemployment is better
        self.assertAlmostEqual(float(economic_utility(9.0, 15.0, 3.0)), 0.5)
        self.assertEqual(float(economic_utility(4.0, 2.0, 2.0)), 0.5)

    def test_raw_satisfaction_weights_priorities(self):
        raw = raw_economic_satisfaction(_economy_catalog(), ECONOMY)
        # interest rates carry no band, so savers hold at neutral
        np.testing.assert_allclose(raw, [0.75, 0.5, (2.0 * 1.0 + 0.5) / 3.0])

    def test_update_smooths_by_volatility(self):
        state = initialize(_economy_catalog(), seed=1)
        self.assertFalse(update_economic_satisfaction(state, FixedRng(0.5)))
        np.testing.assert_array_equal(state.group_economic_satisfaction, [0.5, 0.5, 0.5])

        state.macro = Mock()
        state.macro.get_state.return_value.as_dict.return_value = ECONOMY
        self.assertTrue(update_economic_satisfaction(state, FixedRng(0.5)))
        np.testing.assert_allclose(state.group_economic_satisfaction,
                                   [0.5 * 0.75 + 0.5 * 0.5, 0.5, 2.5 / 3.0])

        self.assertTrue(update_economic_satisfaction(state, FixedRng(0.5)))
        self.assertAlmostEqual(state.group_economic_satisfaction[0], 0.5 * 0.75 + 0.5 * 0.625)

    def test_noise_is_one_point_either_way(self):
        state = initialize(_economy_catalog(), seed=1)
        state.macro = Mock()
        state.macro.get_state.return_value.as_dict.return_value = {}
        update_economic_satisfaction(state, FixedRng(1.0))
        np.testing.assert_allclose(state.group_economic_satisfaction, 0.51)


class TestAggregateIndicators(unittest.TestCase):

    def setUp(self):
        self.state = initialize(_two_group_catalog(), seed=1, parties=_parties())

    def test_national_satisfaction_is_population_weighted(self):
        self.state.group_happiness[:] = [1.0, 0.0]
        self.assertAlmostEqual(national_satisfaction(self.state), (2.0 * 1.0 + 1.0 * 0.5) / 3.0)

        self.state.group_population[:] = 0.0
        self.assertEqual(national_satisfaction(self.state), 0.5)

    def test_swing_is_polling_minus_seat_share(self):
        self.state.group_happiness[:] = [0.4, -0.6]
        polling = polling_shares(self.state)
        swings = swing_prediction(self.state)

        self.assertEqual(list(swings), ["gov", "opp"])
        self.assertAlmostEqual(swings["gov"], (polling[0] - 0.6) * 100.0)
        self.assertAlmostEqual(swings["opp"], (polling[1] - 0.4) * 100.0)
        self.assertAlmostEqual(sum(swings.values()), 0.0)

    def test_swing_without_parties(self):
        state = initialize(_two_group_catalog(), seed=1)
        self.assertEqual(swing_prediction(state), {})

    def test_approval_weights_happiness_by_alignment_and_population(self):
        self.state.group_happiness[:] = [0.5, -1.0]
        # "left" sits on the opposition exactly (weight 2.0); floaters align
        # 0.6 socially and 0.7 economically (weight 0.65)
        self.assertAlmostEqual(approval_rating(self.state, "opp"), (1.0 - 0.65) / 2.65)
        self.assertIsNone(approval_rating(self.state, "nobody"))

    def test_approval_is_zero_with_nobody_to_ask(self):
        self.state.group_population[:] = 0.0
        self.assertEqual(approval_rating(self.state, "gov"), 0.0)


if __name__ == '__main__':
    unittest.main()
