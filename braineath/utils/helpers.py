"""Helper utilities for Braineath."""

from datetime import date, datetime, time, timedelta


def get_today() -> date:
    """Get today's date."""
    return date.today()


def get_now() -> datetime:
    """Get current datetime."""
    return datetime.now()


def days_ago(days: int, now: datetime | None = None) -> datetime:
    """The moment exactly ``days`` days before now."""
    return (now or get_now()) - timedelta(days=days)


def format_date(d: date) -> str:
    """Format date for display."""
    return d.strftime("%Y-%m-%d")


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    return dt.strftime("%Y-%m-%d %H:%M")


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as m:ss."""
    minutes, seconds = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{seconds:02d}"


def parse_time(value: str) -> time:
    """Parse a HH:MM clock time.

    Raises:
        ValueError: If the value is not a valid time.
    """
    return datetime.strptime(value.strip(), "%H:%M").time()