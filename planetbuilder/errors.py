"""Exception types raised by the terrain pipeline."""


class ConfigurationError(ValueError):
    """A caller-supplied setting is out of range (subdivisions, grid size, rates)."""


class DegenerateVectorError(ValueError):
    """A vector is too short to be given a direction."""
