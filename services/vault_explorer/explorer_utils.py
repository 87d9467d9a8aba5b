"""Display helpers for sizes, dates and file types."""

from datetime import datetime, timezone

FILE_TYPES = {
    "pdf": "PDF Document",
    "doc": "Word Document",
    "docx": "Word Document",
    "xls": "Excel Spreadsheet",
    "xlsx": "Excel Spreadsheet",
    "txt": "Text File",
    "md": "Markdown",
    "csv": "CSV Data",
    "json": "JSON File",
}

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_file_size(size: int | None) -> str:
    """Human readable size with binary units, e.g. ``1.5 MB``. Unknown or empty sizes show a dash."""
    if not size or size <= 0:
        return "-"
    if size < 1024:
        return f"{size} B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.1f} {SIZE_UNITS[unit]}"


def format_relative_date(value: datetime, now: datetime | None = None) -> str:
    """
    Short relative date for list rows.

    Args:
        value (datetime): The timestamp to format, naive values are taken as UTC.
        now (datetime | None): Reference time, defaults to the current UTC time.

    Returns:
        str: "Today", "Yesterday", "N days ago" within a week, else e.g. "Jan 15, 2025".
    """
    now = now or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    days = (now.date() - value.astimezone(now.tzinfo).date()).days
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def get_file_extension(name: str) -> str:
    if not name:
        return "file"
    return name.rsplit(".", 1)[-1].lower()


def get_file_type(name: str) -> str:
    return FILE_TYPES.get(get_file_extension(name), "Document")
