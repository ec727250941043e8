#!/usr/bin/env python

import copy

from dataclasses import dataclass
from numbers import Number
from typing import Any, Dict, TypedDict


class ExperimentConfigError(ValueError):
    pass


class ControlSpec(TypedDict, total=False):
    value: Any
    description: str


class VariantSpec(TypedDict, total=False):
    id: str
    value: Any
    threshold: float
    description: str


def _require(mapping, field: str, name: str, section: str):
    if not isinstance(mapping, dict) or field not in mapping:
        raise ExperimentConfigError(
            f"Experiment {name} is missing required field {section}.{field}"
        )
    return mapping[field]


class ExperimentDefinition(object):
    def __init__(
        self,
        name: str,
        control: ControlSpec,
        variant: VariantSpec,
        active: bool = True,
        title: str = None,
        description: str = None,
    ) -> None:
        if not name or not isinstance(name, str):
            raise ExperimentConfigError("Experiment name must be a non-empty string")

        _require(control, "value", name, "control")
        variant_id = _require(variant, "id", name, "variant")
        _require(variant, "value", name, "variant")
        threshold = _require(variant, "threshold", name, "variant")

        if not isinstance(variant_id, str) or not variant_id:
            raise ExperimentConfigError(f"Experiment {name} has an invalid variant.id")
        # bool is a Number subclass, reject it explicitly
        if isinstance(threshold, bool) or not isinstance(threshold, Number):
            raise ExperimentConfigError(f"Experiment {name} has a non-numeric threshold")
        if not 0 < threshold <= 1:
            raise ExperimentConfigError(
                f"Experiment {name} threshold must be in (0, 1], got {threshold}"
            )

        self.name = name
        self.control: ControlSpec = copy.deepcopy(control)
        self.variant: VariantSpec = copy.deepcopy(variant)
        self.active = bool(active)
        self.title = title
        self.description = description

    @property
    def threshold(self) -> float:
        return self.variant["threshold"]

    @property
    def variant_id(self) -> str:
        return self.variant["id"]

    @property
    def control_value(self) -> Any:
        return self.control["value"]

    @property
    def variant_value(self) -> Any:
        return self.variant["value"]

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "ExperimentDefinition":
        if not isinstance(data, dict):
            raise ExperimentConfigError(f"Experiment {name} must be a mapping")
        return cls(
            name=name,
            control=data.get("control"),
            variant=data.get("variant"),
            active=data.get("active", True),
            title=data.get("name"),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        obj = {
            "active": self.active,
            "control": dict(self.control),
            "variant": dict(self.variant),
        }
        if self.title:
            obj["name"] = self.title
        if self.description:
            obj["description"] = self.description
        return obj

    def __repr__(self) -> str:
        return f"ExperimentDefinition({self.name!r}, active={self.active})"


@dataclass
class Options:
    pref_prefix: str = "cohortkit.experiments."
    record_prefix: str = "experiments."
    override_flag_key: str = "overrideExperimentProvider"

    def pref_key(self, name: str) -> str:
        return self.pref_prefix + name

    def record_key(self, name: str) -> str:
        return self.record_prefix + name


Catalog = Dict[str, ExperimentDefinition]
