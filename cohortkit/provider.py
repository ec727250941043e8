#!/usr/bin/env python
"""
Sticky experiment bucketing for a single local profile.

An ExperimentProvider draws once per selection pass to place the profile in
at most one experiment's variant, persists every decision so it survives
restarts, and lets an operator override any experiment through a live
configuration channel.
"""

import logging
import random

from typing import Any, Callable, Dict, List, Optional, Set

from .catalog import build_catalog
from .channel import InMemoryConfigChannel
from .common_types import Catalog, ExperimentConfigError, ExperimentDefinition, Options
from .core import (
    assign_experiments,
    control_decisions,
    participating_variant,
    reconcile,
    validate_thresholds,
)
from .interfaces import AbstractAssignmentStore, AbstractConfigChannel
from .stores import InMemoryAssignmentStore

logger = logging.getLogger("cohortkit")


def _is_record(doc: Any) -> bool:
    return isinstance(doc, dict) and "value" in doc


class ExperimentProvider(object):
    def __init__(
        self,
        experiments: dict,
        rng: Callable[[], float] = None,
        store: AbstractAssignmentStore = None,
        channel: AbstractConfigChannel = None,
        options: Options = None,
        on_experiment_enrolled=None,
    ):
        self._experiments: Catalog = build_catalog(experiments)
        self._rng = rng or random.random
        self._store = store if store is not None else InMemoryAssignmentStore()
        self._channel = channel if channel is not None else InMemoryConfigChannel()
        self._options = options or Options()
        self._enrolledCallback = on_experiment_enrolled

        for name in self._experiments:
            if self._options.record_key(name) == self._options.override_flag_key:
                raise ExperimentConfigError(
                    f"Record key of experiment {name} collides with the override flag key"
                )

        self._records: Dict[str, Any] = {}
        self._data: Dict[str, Any] = {}
        self._experiment_id: Optional[str] = None
        self._drawn_experiment_id: Optional[str] = None
        self._override_engaged = False
        self._initialized = False

        self._subscribed_keys: List[str] = []
        self._subscriptions: Set[Any] = set()

    @property
    def data(self) -> Dict[str, Any]:
        return self._data.copy()

    @property
    def experiment_id(self) -> Optional[str]:
        return self._experiment_id

    # camelCase alias of experiment_id
    @property
    def experimentId(self) -> Optional[str]:
        return self._experiment_id

    @property
    def override_engaged(self) -> bool:
        return self._override_engaged

    @property
    def initialized(self) -> bool:
        return self._initialized

    def get_experiments(self) -> Catalog:
        return self._experiments

    def get_records(self) -> Dict[str, Any]:
        """Persisted decisions by experiment name, including names no longer in the catalog."""
        prefix = self._options.record_prefix
        records = {}
        for key in self._store.keys(prefix):
            doc = self._store.get(key)
            # Skip foreign entries sharing the prefix, e.g. the override flag
            if _is_record(doc):
                records[key[len(prefix):]] = doc["value"]
        return records

    def _active_experiments(self) -> List[ExperimentDefinition]:
        return [exp for exp in self._experiments.values() if exp.active]

    def _read_record(self, name: str) -> Optional[dict]:
        key = self._options.record_key(name)
        doc = self._store.get(key)
        if doc is not None and not _is_record(doc):
            raise ValueError(f"Stored entry {key} is not an assignment record: {doc!r}")
        return doc

    def _write_record(self, name: str, value: Any) -> None:
        self._store.set(self._options.record_key(name), {"value": value})

    def _draw(self) -> float:
        n = self._rng()
        if not 0 <= n < 1:
            raise ValueError(f"Random source returned {n}, expected a value in [0, 1)")
        return n

    def init(self) -> None:
        if self._initialized:
            logger.debug("Experiment provider already initialized")
            return

        records: Dict[str, Any] = {}
        eligible: List[ExperimentDefinition] = []
        stale: List[ExperimentDefinition] = []
        for name, exp in self._experiments.items():
            doc = self._read_record(name)
            if not exp.active:
                if doc is not None:
                    records[name] = exp.control_value
                    if doc["value"] != exp.control_value:
                        stale.append(exp)
                continue
            if doc is None:
                eligible.append(exp)
            else:
                records[name] = doc["value"]

        # Fail before anything is written
        validate_thresholds(eligible)

        active = self._active_experiments()
        drawn_id = participating_variant(active, records)

        decisions: Dict[str, Any] = {}
        enrolled = None
        if eligible and drawn_id:
            logger.debug(
                "Already in %s, %d new experiments get control", drawn_id, len(eligible)
            )
            decisions = control_decisions(eligible)
        elif eligible:
            decisions, drawn_id = assign_experiments(eligible, self._draw())
            enrolled = next((exp for exp in eligible if exp.variant_id == drawn_id), None)

        for exp in stale:
            logger.debug("Experiment %s is inactive, forcing control", exp.name)
            self._write_record(exp.name, exp.control_value)
        for name, value in decisions.items():
            self._write_record(name, value)
        records.update(decisions)

        if enrolled:
            self._track(enrolled, decisions[enrolled.name])

        self._records = records
        self._drawn_experiment_id = drawn_id
        self._override_engaged = bool(self._store.get(self._options.override_flag_key))

        for exp in active:
            key = self._options.pref_key(exp.name)
            self._channel.subscribe(key, self._on_config_change)
            self._subscribed_keys.append(key)

        self._initialized = True
        self._reconcile()
        logger.debug("Experiment provider initialized: %s", self._data)

    def destroy(self) -> None:
        if not self._initialized:
            return

        for key in self._subscribed_keys:
            self._channel.unsubscribe(key, self._on_config_change)
        self._subscribed_keys = []

        self._experiment_id = None
        self._drawn_experiment_id = None
        self._initialized = False

    def clear(self) -> None:
        """Erase persisted decisions, the override flag and override entries."""
        self._store.clear()
        self._records = {}
        self._drawn_experiment_id = None
        self._override_engaged = False
        for name in self._experiments:
            self._channel.delete(self._options.pref_key(name))
        if self._initialized:
            self._reconcile()

    def _on_config_change(self, key: str = None, value: Any = None) -> None:
        if not self._initialized:
            logger.debug("Ignoring change to %s, provider is not initialized", key)
            return
        self._reconcile()

    def _reconcile(self) -> None:
        # Inactive experiments are only shown once they have a record, as control
        visible = [
            exp for exp in self._experiments.values()
            if exp.active or exp.name in self._records
        ]
        overrides = {
            exp.name: self._channel.get(self._options.pref_key(exp.name))
            for exp in self._active_experiments()
        }
        data, overridden = reconcile(visible, self._records, overrides)

        if overridden:
            experiment_id = None
            if not self._override_engaged:
                self._store.set(self._options.override_flag_key, True)
                self._override_engaged = True
        else:
            experiment_id = self._drawn_experiment_id

        changed = data != self._data or experiment_id != self._experiment_id
        self._data = data
        self._experiment_id = experiment_id
        if changed:
            self._fireSubscriptions()

    def subscribe(self, callback):
        self._subscriptions.add(callback)
        return lambda: self._subscriptions.discard(callback)

    def _fireSubscriptions(self) -> None:
        for cb in list(self._subscriptions):
            try:
                cb(self._data.copy(), self._experiment_id)
            except Exception as e:
                logger.warning(f"Error in experiment subscription callback: {e}")

    def _track(self, experiment: ExperimentDefinition, value: Any) -> None:
        if not self._enrolledCallback:
            return None
        try:
            self._enrolledCallback(experiment=experiment, value=value)
        except Exception as e:
            logger.warning(f"Error in enrollment callback: {e}")
