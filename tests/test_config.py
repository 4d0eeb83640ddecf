import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

import numpy as np

import support  # noqa: F401

from housesim.config import SimConfig
from housesim.main import main, run


class TestSimConfig(unittest.TestCase):

    def test_overrides(self):
        config = SimConfig.from_dict({"election_interval": 4, "share_strategy": "normalized"})
        self.assertEqual(config.election_interval, 4)
        self.assertEqual(config.share_strategy, "normalized")
        self.assertEqual(config.effect_gain, SimConfig().effect_gain)

    def test_unknown_key_raises(self):
        with self.assertRaises(ValueError):
            SimConfig.from_dict({"turbo": True})

    def test_unknown_strategy_raises(self):
        with self.assertRaises(ValueError):
            SimConfig.from_dict({"share_strategy": "sainte_lague"})

    def test_constructor_rejects_unknown_strategy(self):
        with self.assertRaises(ValueError):
            SimConfig(share_strategy="dhondt")
        self.assertEqual(SimConfig(share_strategy="normalized").share_strategy, "normalized")

    def test_election_rounds(self):
        config = SimConfig(election_interval=8)
        self.assertEqual([r for r in range(0, 25) if config.is_election_round(r)], [8, 16, 24])
        self.assertFalse(SimConfig(election_interval=0).is_election_round(8))


class TestHeadlessRun(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def test_run_holds_elections(self):
        state = run(17, seed=5, config=SimConfig(election_interval=8))
        self.assertEqual(state.round, 17)
        self.assertEqual([s.round for s in state.history if s.election], [8, 16])
        self.assertEqual(sum(state.seat_counts().values()), len(state.seats))

    def test_economy_moves_the_voters(self):
        plain = run(24, seed=5)
        with_economy = run(24, seed=5, with_economy=True)
        self.assertFalse(np.array_equal(plain.group_happiness, with_economy.group_happiness))
        self.assertFalse(np.all(with_economy.group_economic_satisfaction == 0.5))
        np.testing.assert_array_equal(plain.group_economic_satisfaction, 0.5)

    def test_main_reads_config_and_writes_telemetry(self):
        config_path = os.path.join(self.tmpdir, "room.json")
        csv_path = os.path.join(self.tmpdir, "audit.csv")
        with open(config_path, "w") as f:
            json.dump({"telemetry_interval": 5}, f)

        with patch("builtins.print") as printed:
            main(["--rounds", "10", "--seed", "abc", "--config", config_path,
                  "--telemetry", csv_path, "--economy", "--quiet"])
        self.assertTrue(printed.call_args_list[0][0][0].startswith("rounds: 10"))

        with open(csv_path) as f:
            rows = [line for line in f if line.strip()]
        self.assertEqual([r.split(",")[0] for r in rows[1:]], ["5", "10"])


if __name__ == '__main__':
    unittest.main()
