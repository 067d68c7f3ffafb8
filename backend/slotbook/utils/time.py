from datetime import date, datetime, timezone

MINUTES_PER_DAY = 24 * 60


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_time_label(label: str) -> int:
    """Return minutes since midnight for a wall-clock ``HH:MM`` label."""
    try:
        hours_text, minutes_text = label.split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"invalid time label: {label!r}") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"invalid time label: {label!r}")
    return hours * 60 + minutes


def format_time_label(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError("minutes must fall within a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid ISO date: {value!r}") from exc
