import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from datetime import time as dtime
from enum import Enum

DOW_CODES = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]
MAX_LINE_OCTETS = 75
CRLF = "\r\n"


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


@dataclass(frozen=True)
class ExportConfig:
    product_id: str = "-//Recovery Companion//EN"
    uid_domain: str = "recovery-companion.app"
    meeting_duration: timedelta = timedelta(hours=1)
    strict_weekdays: bool = False
    fold_lines: bool = True


DEFAULT_CONFIG = ExportConfig()


def _as_utc(dt: datetime) -> datetime:
    # naive values are wall-clock times on the local machine
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class RecurrenceSpec:
    frequency: Frequency = Frequency.WEEKLY
    interval: int = 1
    by_weekday: tuple = ()
    until: datetime | None = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "frequency", Frequency(self.frequency))
        except ValueError:
            raise ValueError(f"Unknown recurrence frequency: {self.frequency!r}") from None
        if self.interval < 1:
            raise ValueError(f"Recurrence interval must be >= 1, got {self.interval}")
        object.__setattr__(self, "by_weekday", tuple(self.by_weekday))
        for code in self.by_weekday:
            if code not in DOW_CODES:
                raise ValueError(f"Unknown weekday code: {code!r}")


@dataclass(frozen=True)
class CalendarEvent:
    summary: str
    start: datetime
    end: datetime
    description: str | None = None
    location: str | None = None
    url: str | None = None
    recurrence: RecurrenceSpec | None = None

    def __post_init__(self):
        if not self.summary:
            raise ValueError("Event summary must be non-empty")
        if _as_utc(self.end) <= _as_utc(self.start):
            raise ValueError(f"Event end {self.end} must be after start {self.start}")
        if self.url and ("\r" in self.url or "\n" in self.url):
            raise ValueError(f"Event url must not contain line breaks: {self.url!r}")
        rec = self.recurrence
        if rec is not None and rec.until is not None and _as_utc(rec.until) < _as_utc(self.start):
            raise ValueError(f"Recurrence until {rec.until} is before event start {self.start}")


@dataclass(frozen=True)
class MeetingRecord:
    name: str
    weekday: int
    time: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    format: str | None = None
    url: str | None = None


def make_uid(domain: str = DEFAULT_CONFIG.uid_domain) -> str:
    # millisecond clock keeps ids roughly ordered; uuid4 makes them unique
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}@{domain}"


def ics_escape(s: str) -> str:
    """Escape text per RFC 5545. Order matters: backslash first."""
    s = s.replace("\\", "\\\\")
    s = s.replace(";", r"\;")
    s = s.replace(",", r"\,")
    # CRLF and bare CR count as one line break
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    return s.replace("\n", "\\n")


_UNESCAPE_RE = re.compile(r"\\([\\;,nN])")


def ics_unescape(s: str) -> str:
    return _UNESCAPE_RE.sub(lambda m: "\n" if m.group(1) in "nN" else m.group(1), s)


def dt_to_ics(dt: datetime) -> str:
    u = _as_utc(dt)
    return f"{u.year:04d}{u:%m%dT%H%M%S}Z"


def build_rrule(rec: RecurrenceSpec | None) -> str | None:
    if rec is None:
        return None
    parts = [f"FREQ={rec.frequency.value}"]
    if rec.interval > 1:
        parts.append(f"INTERVAL={rec.interval}")
    if rec.by_weekday:
        parts.append(f"BYDAY={','.join(rec.by_weekday)}")
    if rec.until is not None:
        parts.append(f"UNTIL={dt_to_ics(rec.until)}")
    return ";".join(parts)


_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(s: str) -> dtime:
    """Parse a 24-hour "HH:MM" string."""
    m = _TIME_RE.match((s or "").strip())
    if not m:
        raise ValueError(f"Unrecognized time format: {s!r} (expected HH:MM)")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time out of range: {s!r}")
    return dtime(hours, minutes)


def next_occurrence(now: datetime, weekday: int, at: dtime) -> datetime:
    """
    First slot on `weekday` (0 = Sunday) at time `at`, counted from today.

    A slot on today's weekday stays on today's date even when its time has
    already passed; callers wanting next week's slot must add 7 days.
    """
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be in 0..6 (0 = Sunday), got {weekday}")
    start = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    # datetime.weekday() is Monday-based; shift to Sunday = 0
    current = (now.weekday() + 1) % 7
    day_diff = weekday - current
    if day_diff < 0:
        start += timedelta(days=7 + day_diff)
    elif day_diff > 0:
        start += timedelta(days=day_diff)
    return start


def weekday_code(weekday: int, strict: bool = False) -> str:
    if isinstance(weekday, bool) or not isinstance(weekday, int):
        raise ValueError(f"Weekday must be an integer, got {weekday!r}")
    if 0 <= weekday <= 6:
        return DOW_CODES[weekday]
    if strict:
        raise ValueError(f"Weekday must be in 0..6 (0 = Sunday), got {weekday!r}")
    return "SU"


def meeting_to_event(
    meeting: MeetingRecord,
    now: datetime | None = None,
    config: ExportConfig = DEFAULT_CONFIG,
) -> CalendarEvent:
    if now is None:
        now = datetime.now()
    code = weekday_code(meeting.weekday, strict=config.strict_weekdays)
    start = next_occurrence(now, DOW_CODES.index(code), parse_time_of_day(meeting.time))
    location = ", ".join(p for p in (meeting.address, meeting.city, meeting.state) if p)
    return CalendarEvent(
        summary=meeting.name,
        description=f"Format: {meeting.format}" if meeting.format else None,
        location=location or None,
        start=start,
        end=start + config.meeting_duration,
        url=meeting.url or None,
        recurrence=RecurrenceSpec(Frequency.WEEKLY, 1, (code,)),
    )


def fold_ics_line(line: str) -> str:
    """
    Fold a content line at 75 octets with CRLF and a leading space on
    each continuation. Multi-byte UTF-8 characters are kept whole.
    """
    if len(line.encode("utf-8")) <= MAX_LINE_OCTETS:
        return line
    parts = []
    cur, size = "", 0
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > MAX_LINE_OCTETS:
            parts.append(cur)
            cur, size = " ", 1
        cur += ch
        size += n
    parts.append(cur)
    return CRLF.join(parts)


def event_lines(ev: CalendarEvent, stamp: datetime, config: ExportConfig = DEFAULT_CONFIG) -> list:
    lines = [
        "BEGIN:VEVENT",
        f"UID:{make_uid(config.uid_domain)}",
        f"DTSTAMP:{dt_to_ics(stamp)}",
        f"DTSTART:{dt_to_ics(ev.start)}",
        f"DTEND:{dt_to_ics(ev.end)}",
        f"SUMMARY:{ics_escape(ev.summary)}",
    ]
    if ev.description:
        lines.append(f"DESCRIPTION:{ics_escape(ev.description)}")
    if ev.location:
        lines.append(f"LOCATION:{ics_escape(ev.location)}")
    if ev.url:
        lines.append(f"URL:{ev.url}")
    rrule = build_rrule(ev.recurrence)
    if rrule:
        lines.append(f"RRULE:{rrule}")
    lines.append("END:VEVENT")
    return lines


def events_to_ics(events, config: ExportConfig = DEFAULT_CONFIG) -> str:
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", f"PRODID:{config.product_id}",
             "CALSCALE:GREGORIAN", "METHOD:PUBLISH"]
    for ev in events:
        lines.extend(event_lines(ev, datetime.now(timezone.utc), config))
    lines.append("END:VCALENDAR")
    if config.fold_lines:
        lines = [fold_ics_line(line) for line in lines]
    return CRLF.join(lines) + CRLF


def meetings_to_calendar(
    meetings,
    now: datetime | None = None,
    config: ExportConfig = DEFAULT_CONFIG,
) -> str:
    """Adapt every meeting first so a bad record never yields a partial document."""
    events = [meeting_to_event(m, now, config) for m in meetings]
    return events_to_ics(events, config)
