"""
Error types raised by the BaZi core.

Every failure is reported synchronously as one of these. The core never
returns a partial chart and never substitutes a default pillar.
"""

from typing import Optional


class BaziError(RuntimeError):
    """Base class for all chart computation failures."""

    code = "bazi_error"

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.details = dict(details or {})


class InvalidChartInput(BaziError, ValueError):
    """Caller supplied input the core cannot work with (e.g. unknown gender)."""

    code = "invalid_input"


class InvalidMomentFormat(InvalidChartInput):
    """Birth date or time could not be parsed."""

    code = "invalid_moment_format"


class CalendarProviderUnavailable(BaziError):
    """The lunisolar calendar provider failed or returned no data."""

    code = "calendar_provider_unavailable"

    def __init__(self, message: str, *, provider: Optional[str] = None,
                 details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.provider = provider


class UnknownPillarLabel(BaziError, LookupError):
    """A label is not one of the 60 canonical Stem-Branch strings.

    Internal consistency failure: a correct provider never produces one.
    """

    code = "unknown_pillar_label"

    def __init__(self, label, *, details: Optional[dict] = None):
        super().__init__(f"Unknown pillar label: {label!r}", details=details)
        self.label = label
