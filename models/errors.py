"""
Errors

Exception types raised by the model layer. Every error stays local to the
pipeline that raised it.
"""


class ConfigurationError(ValueError):
    """Invalid hyperparameter name/value, unsupported tuning or unknown metric."""
    pass


class FitFailureError(RuntimeError):
    """A final fit failed, or no grid point could be fitted at all."""
    pass


class ResourceError(RuntimeError):
    """The worker pool could not be created."""
    pass


class MetricComputationError(ValueError):
    """Predictions and ground truth disagree in length or label domain."""
    pass


class PipelineStateError(RuntimeError):
    """A pipeline stage was called out of order or after a failure."""
    pass
