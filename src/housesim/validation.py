"""Authoring checks for content catalogs.

The engine tolerates all of these at run time (dangling references are
dropped, degenerate bands are run with zero width); this is the tooling
that tells content authors about them.
"""
import numpy as np

from .voters import UTILITY_BANDS


DEMOGRAPHIC_TOLERANCE = 1e-6


class CatalogValidationError(ValueError):

    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__("Catalog has {} issue(s):\n  {}".format(
            len(self.issues), "\n  ".join(self.issues)))


def validate_catalog(catalog, strict=False):
    """Return a list of human-readable problems; raise on any if ``strict``."""
    issues = []

    for sit in catalog.situations:
        for label, value in (("trigger", sit.trigger_threshold),
                             ("deactivate", sit.deactivate_threshold)):
            if not 0.0 <= value <= 1.0:
                issues.append(f"situation {sit.id}: {label} threshold {value} outside [0, 1]")
        if sit.deactivate_threshold >= sit.trigger_threshold:
            issues.append(f"situation {sit.id}: deactivate threshold {sit.deactivate_threshold} "
                          f">= trigger threshold {sit.trigger_threshold}")
        if not sit.inputs:
            issues.append(f"situation {sit.id}: no inputs, it can never trigger")

    for owner_id, ref_id in catalog.dangling:
        issues.append(f"{owner_id}: unknown reference {ref_id!r}")

    for group in catalog.voter_groups:
        if group.base_population <= 0:
            issues.append(f"voter group {group.id}: non-positive base population")
        for name, weight in group.economic_priorities:
            if name not in UTILITY_BANDS:
                issues.append(f"voter group {group.id}: unknown economic indicator {name!r}")
            elif weight < 0:
                issues.append(f"voter group {group.id}: negative priority on {name}")

    if catalog.num_groups:
        totals = catalog.seat_demographics.sum(axis=1)
        for seat, total in zip(catalog.seats, totals):
            if not np.isclose(total, 1.0, atol=DEMOGRAPHIC_TOLERANCE):
                issues.append(f"seat {seat.id}: demographic weights sum to {total:.4f}")

    if strict and issues:
        raise CatalogValidationError(issues)
    return issues
