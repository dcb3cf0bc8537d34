"""Joda-style timestamp patterns rendered with :mod:`datetime`.

Purpose
-------
Operators configure the ``time`` field with the same pattern language that
Loghub appenders on other platforms accept (``yyyy-MM-dd'T'HH:mm:ssZ``). This
module compiles such a pattern once, at configuration time, into a sequence of
small renderers so formatting a record is a cheap loop.

Contents
--------
* :func:`resolve_zone` - map a zone id (``UTC``, ``Europe/Berlin``,
  ``+08:00``) to a :class:`datetime.tzinfo`.
* :func:`compile_time_format` - build a :class:`TimeFormatter`.
* :class:`TimeFormatter` - render epoch milliseconds.

System Role
-----------
Domain helper used by :mod:`lib_log_loghub.domain.settings` for validation and
by the event adaptation use case for the ``time`` field.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

Renderer = Callable[[datetime], str]

_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?([+-])(\d{1,2})(?::?(\d{2}))?$")
_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def resolve_zone(zone_id: str) -> tzinfo:
    """Return the tzinfo for ``zone_id`` or raise :class:`ValueError`.

    Examples
    --------
    >>> resolve_zone("UTC")
    datetime.timezone.utc
    >>> resolve_zone("+08:00")
    datetime.timezone(datetime.timedelta(seconds=28800))
    """

    if zone_id in {"UTC", "Z", "GMT"}:
        return timezone.utc
    match = _OFFSET_RE.match(zone_id)
    if match:
        sign, hours, minutes = match.groups()
        delta = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if delta >= timedelta(hours=24):
            raise ValueError(f"Zone offset out of range: {zone_id!r}")
        return timezone(-delta if sign == "-" else delta)
    try:
        return ZoneInfo(zone_id)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone id: {zone_id!r}") from exc


def _offset(moment: datetime, *, colon: bool) -> str:
    offset = moment.utcoffset() or timedelta(0)
    sign = "-" if offset < timedelta(0) else "+"
    total = abs(int(offset.total_seconds())) // 60
    hours, minutes = divmod(total, 60)
    return f"{sign}{hours:02d}:{minutes:02d}" if colon else f"{sign}{hours:02d}{minutes:02d}"


def _short_zone_name(moment: datetime, zone_id: str) -> str:
    """Fixed offsets other than UTC print as their offset id, e.g. ``+08:00``."""

    if isinstance(moment.tzinfo, timezone) and moment.tzinfo is not timezone.utc:
        return _offset(moment, colon=True)
    return moment.tzname() or zone_id


def _padded(getter: Callable[[datetime], int], width: int) -> Renderer:
    return lambda moment: str(getter(moment)).zfill(width)


def _year(count: int) -> Renderer:
    if count == 2:
        return lambda moment: f"{moment.year % 100:02d}"
    return _padded(lambda moment: moment.year, count)


def _month(count: int) -> Renderer:
    if count == 3:
        return lambda moment: _MONTHS[moment.month - 1][:3]
    if count >= 4:
        return lambda moment: _MONTHS[moment.month - 1]
    return _padded(lambda moment: moment.month, count)


def _weekday(count: int) -> Renderer:
    if count >= 4:
        return lambda moment: _WEEKDAYS[moment.weekday()]
    return lambda moment: _WEEKDAYS[moment.weekday()][:3]


def _fraction(count: int) -> Renderer:
    def render(moment: datetime) -> str:
        millis = f"{moment.microsecond // 1000:03d}"
        return millis[:count] if count <= 3 else millis + "0" * (count - 3)

    return render


def _zone(count: int, zone_id: str) -> Renderer:
    if count == 1:
        return lambda moment: _offset(moment, colon=False)
    if count == 2:
        return lambda moment: _offset(moment, colon=True)
    return lambda moment: zone_id


def _renderer_for(letter: str, count: int, zone_id: str) -> Renderer:
    if letter in "yY":
        return _year(count)
    if letter == "C":
        return _padded(lambda moment: moment.year // 100, count)
    if letter == "M":
        return _month(count)
    if letter == "d":
        return _padded(lambda moment: moment.day, count)
    if letter == "D":
        return _padded(lambda moment: moment.timetuple().tm_yday, count)
    if letter == "H":
        return _padded(lambda moment: moment.hour, count)
    if letter == "k":
        return _padded(lambda moment: moment.hour or 24, count)
    if letter == "K":
        return _padded(lambda moment: moment.hour % 12, count)
    if letter == "h":
        return _padded(lambda moment: moment.hour % 12 or 12, count)
    if letter == "m":
        return _padded(lambda moment: moment.minute, count)
    if letter == "s":
        return _padded(lambda moment: moment.second, count)
    if letter == "S":
        return _fraction(count)
    if letter == "a":
        return lambda moment: "AM" if moment.hour < 12 else "PM"
    if letter == "E":
        return _weekday(count)
    if letter == "e":
        return _padded(lambda moment: moment.isoweekday(), count)
    if letter == "w":
        return _padded(lambda moment: moment.isocalendar()[1], count)
    if letter == "x":
        if count == 2:
            return lambda moment: f"{moment.isocalendar()[0] % 100:02d}"
        return _padded(lambda moment: moment.isocalendar()[0], count)
    if letter == "G":
        return lambda moment: "AD"
    if letter == "z":
        return lambda moment: _short_zone_name(moment, zone_id)
    if letter == "Z":
        return _zone(count, zone_id)
    raise ValueError(f"Illegal pattern component: {letter * count}")


def _tokenize(pattern: str) -> list[tuple[str, int] | str]:
    """Split ``pattern`` into ``(letter, count)`` runs and literal strings."""

    tokens: list[tuple[str, int] | str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "'":
            if index + 1 < length and pattern[index + 1] == "'":
                tokens.append("'")
                index += 2
                continue
            end = index + 1
            literal: list[str] = []
            while True:
                if end >= length:
                    raise ValueError(f"Unterminated quote in time pattern: {pattern!r}")
                if pattern[end] == "'":
                    if end + 1 < length and pattern[end + 1] == "'":
                        literal.append("'")
                        end += 2
                        continue
                    break
                literal.append(pattern[end])
                end += 1
            tokens.append("".join(literal))
            index = end + 1
        elif ("a" <= char <= "z") or ("A" <= char <= "Z"):
            end = index
            while end < length and pattern[end] == char:
                end += 1
            tokens.append((char, end - index))
            index = end
        else:
            tokens.append(char)
            index += 1
    return tokens


@dataclass(frozen=True)
class TimeFormatter:
    """Render epoch milliseconds with a compiled pattern in a fixed zone.

    Examples
    --------
    >>> formatter = compile_time_format("yyyy-MM-dd'T'HH:mm:ssZ", "UTC")
    >>> formatter.format_millis(1_700_000_000_123)
    '2023-11-14T22:13:20+0000'
    """

    pattern: str
    zone_id: str
    zone: tzinfo = field(compare=False)
    renderers: Sequence[Renderer] = field(compare=False, repr=False)

    def format_datetime(self, moment: datetime) -> str:
        local = moment.astimezone(self.zone)
        return "".join(render(local) for render in self.renderers)

    def format_millis(self, millis: int) -> str:
        seconds, remainder = divmod(int(millis), 1000)
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(milliseconds=remainder)
        return self.format_datetime(moment)


def compile_time_format(pattern: str, zone_id: str) -> TimeFormatter:
    """Compile ``pattern`` for ``zone_id``; raise :class:`ValueError` when invalid."""

    if not pattern:
        raise ValueError("Time pattern must not be empty")
    zone = resolve_zone(zone_id)
    renderers: list[Renderer] = []
    for token in _tokenize(pattern):
        if isinstance(token, str):
            renderers.append(lambda _moment, text=token: text)
        else:
            letter, count = token
            renderers.append(_renderer_for(letter, count, zone_id))
    return TimeFormatter(pattern=pattern, zone_id=zone_id, zone=zone, renderers=tuple(renderers))


__all__ = ["TimeFormatter", "compile_time_format", "resolve_zone"]
