"""Parse validity strings such as ``90d``, ``72h`` or ``1h30m``."""

import re
from datetime import timedelta

from certsmith.errors import InvalidDuration

DAY_SUFFIX = "d"

# Units accepted by duration literals, expressed in microseconds.
_UNIT_MICROSECONDS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60 * 1_000_000,
    "h": 3600 * 1_000_000,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text):
    """Parse a validity string into a timedelta.

    Args:
        text: Either ``<days>d`` or a duration literal made of one or more
            ``<number><unit>`` groups (units ns, us, ms, s, m, h), optionally
            signed.

    Returns:
        datetime.timedelta

    Raises:
        InvalidDuration: If the text matches neither form.
    """
    if not isinstance(text, str) or not text:
        raise InvalidDuration(text)

    if text.endswith(DAY_SUFFIX):
        days = text[: -len(DAY_SUFFIX)]
        if not re.fullmatch(r"[+-]?\d+", days):
            raise InvalidDuration(text)
        try:
            return timedelta(hours=int(days) * 24)
        except OverflowError as e:
            raise InvalidDuration(text) from e

    return _parse_literal(text)


def _parse_literal(text):
    sign = 1
    body = text
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body:
        raise InvalidDuration(text)

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            raise InvalidDuration(text)
        number, unit = match.groups()
        total += float(number) * _UNIT_MICROSECONDS[unit]
        pos = match.end()

    try:
        return timedelta(microseconds=sign * total)
    except OverflowError as e:
        raise InvalidDuration(text) from e
