from .magnitude import CALENDAR_UNITS, SUBSECOND_UNITS, UNITS, MagnitudeRecord

__all__ = ["MagnitudeRecord", "UNITS", "CALENDAR_UNITS", "SUBSECOND_UNITS"]
