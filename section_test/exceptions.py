"""Exception types raised by section-test."""


class SectionTestError(Exception):
    """Base class for all section-test errors."""


class ConfigurationError(SectionTestError):
    """A test, section, or run configuration is used incorrectly.

    Raised immediately by the declaring call and never recovered.
    """


class LogicError(SectionTestError):
    """Internal state is inconsistent."""


class UnitStateError(LogicError):
    """The execution-unit tree was corrupted, e.g. by a key collision."""


class SuiteLoadError(SectionTestError):
    """A suite file could not be found or imported."""
