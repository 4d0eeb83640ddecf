import os

import numpy as np

from .policies import budget_balance


HEADER = ("round,avg_stat,active_situations,avg_happiness,avg_turnout,"
          "media_items,budget_balance,leader\n")


class TelemetryWriter:
    """Appends one CSV audit row every ``interval`` rounds."""

    def __init__(self, path="sim_audit.csv", interval=10):
        self.path = path
        self.interval = interval
        if not os.path.exists(self.path):
            with open(self.path, "w") as f:
                f.write(HEADER)

    def log_telemetry(self, state, round_number):
        if self.interval <= 0 or round_number % self.interval != 0:
            return False
        avg_stat = float(np.mean(state.stat_value)) if len(state.stat_value) else 0.0
        avg_happiness = float(np.mean(state.group_happiness)) if len(state.group_happiness) else 0.0
        avg_turnout = float(np.mean(state.group_turnout)) if len(state.group_turnout) else 0.0
        with open(self.path, "a") as f:
            f.write(f"{round_number},{avg_stat:.4f},{int(np.sum(state.situation_active))},"
                    f"{avg_happiness:.4f},{avg_turnout:.4f},{len(state.media_focus)},"
                    f"{budget_balance(state):.4f},{state.leader_id or ''}\n")
        return True
