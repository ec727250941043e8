import logging

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from .common_types import ExperimentConfigError, ExperimentDefinition


logger = logging.getLogger("cohortkit.core")

# Absorbs float rounding, e.g. 0.1 + 0.2 + 0.7
THRESHOLD_TOLERANCE = 1e-9


def validate_thresholds(experiments: Sequence[ExperimentDefinition]) -> float:
    total = sum(exp.threshold for exp in experiments)
    if total > 1 + THRESHOLD_TOLERANCE:
        names = ", ".join(exp.name for exp in experiments)
        raise ExperimentConfigError(
            f"Experiment thresholds add up to {total}, more than 1 ({names})"
        )
    return total


def getVariantRanges(experiments: Sequence[ExperimentDefinition]) -> List[Tuple[float, float]]:
    cumulative: float = 0
    ranges = []
    for exp in experiments:
        start = cumulative
        cumulative += exp.threshold
        ranges.append((start, cumulative))
    return ranges


def inRange(n: float, range: Tuple[float, float]) -> bool:
    return range[0] <= n < range[1]


def chooseExperiment(n: float, ranges: List[Tuple[float, float]]) -> int:
    for i, r in enumerate(ranges):
        if inRange(n, r):
            return i
    return -1


def assign_experiments(
    eligible: Sequence[ExperimentDefinition], n: float
) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Run one selection pass over the eligibility set.

    At most one experiment, the one whose range contains ``n``, gets its
    variant value; every other experiment in the pass gets its control value.

    Returns:
        (decisions by experiment name, winning variant id or None)

    Raises:
        ExperimentConfigError: if the thresholds of ``eligible`` add up to more than 1
    """
    validate_thresholds(eligible)

    chosen = chooseExperiment(n, getVariantRanges(eligible))

    decisions: Dict[str, Any] = {}
    experiment_id = None
    for i, exp in enumerate(eligible):
        if i == chosen:
            decisions[exp.name] = exp.variant_value
            experiment_id = exp.variant_id
        else:
            decisions[exp.name] = exp.control_value

    if experiment_id:
        logger.debug("Draw %s selected variant %s", n, experiment_id)
    else:
        logger.debug("Draw %s selected no variant among %d experiments", n, len(eligible))
    return decisions, experiment_id


def control_decisions(eligible: Sequence[ExperimentDefinition]) -> Dict[str, Any]:
    return {exp.name: exp.control_value for exp in eligible}


def participating_variant(
    experiments: Sequence[ExperimentDefinition], records: Mapping[str, Any]
) -> Optional[str]:
    """Variant id of the first recorded experiment whose record is its variant value."""
    for exp in experiments:
        if exp.name not in records:
            continue
        if exp.variant_value == exp.control_value:
            continue
        if records[exp.name] == exp.variant_value:
            return exp.variant_id
    return None


def reconcile(
    experiments: Sequence[ExperimentDefinition],
    records: Mapping[str, Any],
    overrides: Mapping[str, Any],
) -> Tuple[Dict[str, Any], bool]:
    """Build the live view: an override (anything but None) wins over the record."""
    data: Dict[str, Any] = {}
    overridden = False
    for exp in experiments:
        override = overrides.get(exp.name, None)
        if override is not None:
            data[exp.name] = override
            overridden = True
        else:
            data[exp.name] = records.get(exp.name, exp.control_value)
    return data, overridden
