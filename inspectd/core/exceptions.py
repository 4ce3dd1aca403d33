class InspectError(Exception):
    """Base exception for all application errors."""
    pass

class PercentileError(InspectError, ValueError):
    """A percentile could not be computed from a StatsTimer."""
    pass

class InvalidPercentileError(PercentileError):
    pass

class NoSamplesError(PercentileError):
    pass

class CollectorError(InspectError):
    pass

class ConfigurationError(InspectError):
    pass
