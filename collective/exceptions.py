# exceptions.py
# ------------------------------------------------------------
# Error taxonomy for collective classifiers.


class CollectiveError(Exception):
    """Base class for all errors raised by the collective package."""


class ConfigurationError(CollectiveError, ValueError):
    """Invalid parameters or incompatible train/test headers."""


class CapabilityError(CollectiveError, ValueError):
    """The data contains an attribute or class type the algorithm cannot handle."""


class ConvergenceError(CollectiveError, RuntimeError):
    """A propagation round made no progress while instances were still unresolved."""


class InstanceNotFoundError(CollectiveError, LookupError):
    """An instance passed for prediction does not match any resolved test instance."""


class BuildInterrupted(CollectiveError, RuntimeError):
    """The build was stopped from outside between two rounds."""
