import unittest

import numpy as np

from support import effect

from housesim.catalog import NodeCatalog, NodeKind, NodeRef
from housesim.content import sample_catalog
from housesim.validation import CatalogValidationError, validate_catalog


class TestNodeCatalog(unittest.TestCase):

    def test_camel_case_content_is_accepted(self):
        catalog = NodeCatalog.from_dict({
            "policies": [{"id": "fuel_tax", "currentValue": 0.3, "costPerPoint": -0.2,
                          "implementationDelay": 3,
                          "ideologicalBias": {"social": 0.1, "economic": -0.4},
                          "effects": [{"targetId": "prices", "multiplier": 0.5}]}],
            "stats": [{"id": "prices", "value": 0.4, "defaultValue": 0.5, "isGood": False}],
            "voterGroups": [{"id": "drivers", "basePopulation": 2.0,
                             "concerns": [{"nodeId": "prices", "weight": 1.0, "desiresHigh": False}]}],
            "seats": [{"id": "north", "state": "QLD", "ownerPlayerId": "blue",
                       "demographics": [{"groupId": "drivers", "weight": 1.0}]}],
        })

        policy = catalog.policies[0]
        self.assertEqual((policy.current_value, policy.target_value), (0.3, 0.3))
        self.assertEqual(policy.implementation_delay, 3)
        self.assertEqual(policy.economic_bias, -0.4)
        self.assertEqual(catalog.stats[0].default_value, 0.5)
        self.assertFalse(catalog.stats[0].is_good)
        self.assertEqual(catalog.voter_groups[0].base_population, 2.0)
        self.assertEqual((catalog.seats[0].region, catalog.seats[0].owner_id), ("QLD", "blue"))
        self.assertEqual(len(catalog.effects), 1)
        self.assertEqual(catalog.effects.inertia[0], 0.3)

    def test_node_refs_resolve_into_the_flat_vector(self):
        catalog = sample_catalog()
        self.assertEqual(catalog.resolve("unemployment"),
                         NodeRef(NodeKind.STAT, catalog.stat_index("unemployment")))
        self.assertEqual(catalog.flat_index("carbon_tax"), catalog.policy_index("carbon_tax"))
        self.assertEqual(catalog.flat_index("recession"),
                         catalog.num_policies + catalog.num_stats + catalog.situation_index("recession"))
        self.assertIsNone(catalog.resolve("nope"))
        self.assertIsNone(catalog.stat_index("carbon_tax"))

    def test_duplicate_ids_raise(self):
        with self.assertRaises(ValueError):
            NodeCatalog.from_dict({"policies": [{"id": "x"}], "stats": [{"id": "x"}]})
        with self.assertRaises(ValueError):
            NodeCatalog.from_dict({"seats": [{"id": "s"}, {"id": "s"}]})

    def test_missing_required_field_raises(self):
        with self.assertRaises(ValueError):
            NodeCatalog.from_dict({"situations": [{"id": "s", "trigger_threshold": 0.5}]})

    def test_dangling_references_are_dropped(self):
        catalog = NodeCatalog.from_dict({
            "policies": [{"id": "p", "effects": [effect("ghost", 1.0), effect("s", 1.0)]}],
            "stats": [{"id": "s"}],
            "voter_groups": [{"id": "g", "concerns": [{"node_id": "phantom", "weight": 1.0}]}],
        })
        self.assertEqual(len(catalog.effects), 1)
        self.assertEqual(len(catalog.concerns), 0)
        self.assertEqual(catalog.dangling, [("p", "ghost"), ("g", "phantom")])

    def test_stat_self_loops_are_skipped(self):
        catalog = NodeCatalog.from_dict({
            "stats": [{"id": "s", "effects": [effect("s", 0.5)]}],
        })
        self.assertEqual(len(catalog.effects), 0)
        self.assertEqual(catalog.dangling, [])

    def test_edge_tables_are_read_only(self):
        catalog = sample_catalog()
        with self.assertRaises(ValueError):
            catalog.effects.multiplier[0] = 9.0
        self.assertFalse(catalog.seat_demographics.flags.writeable)

    def test_seat_demographics_matrix(self):
        catalog = sample_catalog()
        self.assertEqual(catalog.seat_demographics.shape, (catalog.num_seats, catalog.num_groups))
        np.testing.assert_allclose(catalog.seat_demographics.sum(axis=1), 1.0)

    def test_economic_priorities_and_volatility(self):
        catalog = NodeCatalog.from_dict({"voterGroups": [
            {"id": "workers", "priorities": {"unemployment": 1.0}, "volatility": 0.35},
            {"id": "calm", "economicPriorities": {"inflation": 0.5}, "volatility": 1.7},
            {"id": "default"},
        ]})
        self.assertEqual(catalog.voter_groups[0].economic_priorities, (("unemployment", 1.0),))
        self.assertEqual(catalog.voter_groups[1].economic_priorities, (("inflation", 0.5),))
        np.testing.assert_allclose(catalog.group_volatility, [0.35, 1.0, 0.3])


class TestValidation(unittest.TestCase):

    def test_sample_content_is_clean(self):
        self.assertEqual(validate_catalog(sample_catalog()), [])

    def test_authoring_bugs_are_reported(self):
        catalog = NodeCatalog.from_dict({
            "stats": [{"id": "s"}],
            "situations": [{"id": "flappy", "trigger_threshold": 0.4, "deactivate_threshold": 0.6,
                            "inputs": [{"source_id": "s", "weight": 1.0}]},
                           {"id": "wild", "trigger_threshold": 1.5, "deactivate_threshold": 0.2,
                            "inputs": [{"source_id": "lost", "weight": 1.0}]}],
            "voter_groups": [{"id": "g", "base_population": 0.0,
                              "economic_priorities": {"tulip_prices": 1.0, "inflation": -0.5}}],
            "seats": [{"id": "half", "demographics": [{"group_id": "g", "weight": 0.5}]}],
        })
        issues = validate_catalog(catalog)
        text = "\n".join(issues)

        self.assertIn("flappy", text)
        self.assertIn("wild: trigger threshold 1.5", text.replace("situation ", ""))
        self.assertIn("'lost'", text)
        self.assertIn("non-positive base population", text)
        self.assertIn("unknown economic indicator 'tulip_prices'", text)
        self.assertIn("negative priority on inflation", text)
        self.assertIn("seat half", text)

        with self.assertRaises(CatalogValidationError) as ctx:
            validate_catalog(catalog, strict=True)
        self.assertEqual(ctx.exception.issues, issues)
        self.assertIsInstance(ctx.exception, ValueError)


if __name__ == '__main__':
    unittest.main()
