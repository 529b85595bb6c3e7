"""Amateur radio building blocks: CW, FT8 timing and QSO logic, EQ, fldigi and NTP."""

__version__ = "0.1.0"