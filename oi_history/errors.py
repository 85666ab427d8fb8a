"""Exception types raised by the OI history engine."""


class OIHistoryError(Exception):
    """Base class for all engine errors."""


class InvalidParameter(OIHistoryError, ValueError):
    """A caller supplied a filter/config value outside its contract."""


class InvalidSnapshot(OIHistoryError, ValueError):
    """An upstream document could not be turned into a snapshot."""
