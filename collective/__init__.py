from .classifier import CollectiveClassifier, CollectiveKNN, FlipCollective
from .config import SETTINGS, BuildContext
from .controller import BuildState, IterationController
from .dataset import Capabilities, Dataset, Schema
from .exceptions import (
    BuildInterrupted,
    CapabilityError,
    CollectiveError,
    ConfigurationError,
    ConvergenceError,
    InstanceNotFoundError,
)
from .flipping import LabelFlipping
from .knn import NeighborPropagation
from .splitter import Splitter

__all__ = [
    "BuildContext",
    "BuildInterrupted",
    "BuildState",
    "Capabilities",
    "CapabilityError",
    "CollectiveClassifier",
    "CollectiveError",
    "CollectiveKNN",
    "ConfigurationError",
    "ConvergenceError",
    "Dataset",
    "FlipCollective",
    "InstanceNotFoundError",
    "IterationController",
    "LabelFlipping",
    "NeighborPropagation",
    "SETTINGS",
    "Schema",
    "Splitter",
]
