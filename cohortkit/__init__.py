from .provider import ExperimentProvider, logger

from .common_types import (
    ExperimentDefinition,
    ExperimentConfigError,
    Options,
)

from .interfaces import AbstractAssignmentStore, AbstractConfigChannel
from .stores import InMemoryAssignmentStore, JsonFileAssignmentStore
from .channel import InMemoryConfigChannel
from .catalog import load_catalog, build_catalog, decrypt

__version__ = "1.0.0"
