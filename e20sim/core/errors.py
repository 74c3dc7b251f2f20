"""
Simulator Errors - Exception taxonomy for the blend simulator core
"""


class SimulatorError(Exception):
    """Base class for all simulator errors"""


class ConfigurationError(SimulatorError, ValueError):
    """
    Malformed or insufficient configuration (emission profile, YAML config).

    Raised at startup and never recovered from: it signals a programming or
    packaging mistake, not bad user input.
    """


class InvalidInput(SimulatorError, ValueError):
    """
    Parameter input that cannot be interpreted as a blend percentage.

    Always recovered locally by the parameter controller.
    """
