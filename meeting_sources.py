"""Turn upstream meeting-directory payloads into MeetingRecord values."""
from datetime import datetime, timedelta

from meetings_to_ics_impl import MeetingRecord, parse_time_of_day


def _text(value) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _weekday(value, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Weekday must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Weekday must be an integer, got {value!r}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Weekday must be an integer, got {value!r}") from None


def _hhmm(value) -> str:
    # BMLT sends "19:30:00"; the engine wants "19:30"
    s = _text(value)
    if s is None:
        raise ValueError("Meeting time is required")
    if s.count(":") == 2:
        s = s.rsplit(":", 1)[0]
    return s


def meeting_from_dict(data: dict) -> MeetingRecord:
    if not isinstance(data, dict):
        raise ValueError(f"Meeting must be an object, got {type(data).__name__}")
    name = _text(data.get("name"))
    if name is None:
        raise ValueError("Meeting name is required")
    day = data.get("day")
    if day is None:
        day = data.get("weekday")
    if day is None or day == "":
        raise ValueError(f"Meeting {name!r} has no weekday")
    return MeetingRecord(
        name=name,
        weekday=_weekday(day),
        time=_hhmm(data.get("time")),
        address=_text(data.get("address")),
        city=_text(data.get("city")),
        state=_text(data.get("state")),
        format=_text(data.get("format")),
        url=_text(data.get("url")),
    )


def meeting_from_bmlt(data: dict) -> MeetingRecord:
    """Map one BMLT GetSearchResults entry."""
    return MeetingRecord(
        name=_text(data.get("meeting_name")) or "NA Meeting",
        weekday=_weekday(data.get("weekday_tinyint")),
        time=_hhmm(data.get("start_time")),
        address=_text(data.get("location_street")),
        city=_text(data.get("location_municipality")),
        state=_text(data.get("location_province")),
        format=_text(data.get("formats")),
        url=_text(data.get("virtual_meeting_link")),
    )


def meeting_from_meeting_guide(data: dict) -> MeetingRecord:
    return MeetingRecord(
        name=_text(data.get("name")) or "AA Meeting",
        weekday=_weekday(data.get("day")),
        time=_hhmm(data.get("time")),
        address=_text(data.get("address")),
        city=_text(data.get("city")),
        state=_text(data.get("state")),
        format=_text(data.get("format")),
        url=_text(data.get("url")),
    )


def meeting_from_any(data: dict) -> MeetingRecord:
    if isinstance(data, dict) and ("meeting_name" in data or "weekday_tinyint" in data):
        return meeting_from_bmlt(data)
    return meeting_from_dict(data)


def meetings_from_payload(payload) -> list:
    """Accept a list of meetings or {"meetings": [...]}."""
    if isinstance(payload, dict) and "meetings" in payload:
        payload = payload["meetings"]
    if not isinstance(payload, list):
        raise ValueError("Expected a JSON array of meetings")
    return [meeting_from_any(m) for m in payload]


def meeting_status(meeting: MeetingRecord, now: datetime) -> str:
    """
    Where this week's slot sits relative to `now`: "past", "starting-soon"
    (within the hour), "today" (within 24h) or "upcoming".

    Unlike the calendar export, the day offset does not wrap, so a Monday
    meeting seen on a Friday is "past".
    """
    at = parse_time_of_day(meeting.time)
    slot = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    slot += timedelta(days=meeting.weekday - (now.weekday() + 1) % 7)
    hours_until = (slot - now) / timedelta(hours=1)
    if hours_until < 0:
        return "past"
    if hours_until <= 1:
        return "starting-soon"
    if hours_until <= 24:
        return "today"
    return "upcoming"
