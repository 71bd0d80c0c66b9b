import datetime


def format_datetime_into_isoformat(date_time: datetime.datetime) -> str:
    return date_time.replace(tzinfo=datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def as_utc(date_time: datetime.datetime | None) -> datetime.datetime | None:
    """
    SQLite hands back naive datetimes even for `DateTime(timezone=True)` columns; treat those as UTC.
    """
    if date_time is None:
        return None
    if date_time.tzinfo is None:
        return date_time.replace(tzinfo=datetime.timezone.utc)
    return date_time.astimezone(datetime.timezone.utc)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)
