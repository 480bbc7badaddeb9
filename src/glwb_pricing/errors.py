"""
Exception types for GLWB pricing.

All construction-time validation failures (benefit configuration, market
parameters, simulator settings, collaborator assumptions) raise
InvalidConfigurationError so callers can distinguish "bad inputs, nothing
ran" from genuine runtime failures.
"""


class InvalidConfigurationError(ValueError):
    """Raised when a configuration value is rejected at construction time."""
