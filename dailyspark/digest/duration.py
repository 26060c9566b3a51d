"""Human-readable durations for topic time estimates."""

from __future__ import annotations


def _unit(value: int, name: str) -> str:
    # Singular only for exactly 1; zero never reaches here
    return f"{value} {name}{'s' if value > 1 else ''}"


def format_duration(seconds: int) -> str:
    """
    Format a number of seconds as hours, minutes and seconds.

    Under a minute the plural form is always used ("1 seconds"); above that,
    zero-valued trailing units are omitted and only values > 1 are pluralized.

    Examples:
        >>> format_duration(59)
        '59 seconds'
        >>> format_duration(61)
        '1 minute 1 second'
        >>> format_duration(3725)
        '1 hour 2 minutes 5 seconds'
        >>> format_duration(7260)
        '2 hours 1 minute'
    """
    if seconds < 60:
        return f"{seconds} seconds"

    hours = seconds // 3600
    minutes = (seconds // 60) % 60
    remaining = seconds % 60

    if hours > 0:
        parts = [_unit(hours, "hour")]
    elif minutes > 0:
        parts = []
    else:
        return f"{remaining} seconds"

    if minutes > 0:
        parts.append(_unit(minutes, "minute"))
    if remaining > 0:
        parts.append(_unit(remaining, "second"))
    return " ".join(parts)
