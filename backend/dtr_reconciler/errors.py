from __future__ import annotations


class ReconcilerError(Exception):
    pass


class DateRangeError(ReconcilerError, ValueError):
    pass


class ConfigError(ReconcilerError):
    pass
