# nomadigma/utils/formatters.py
import re
from datetime import datetime
from typing import Optional
import pytz
from ..config import Config

TAG_RE = re.compile(r"<[^>]*>")

def format_price(amount: float) -> str:
    """Two-decimal price, rounding only for display"""
    return f"{amount:.2f}"

def format_datetime(dt: datetime) -> str:
    """Date and time in the site timezone"""
    local_tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(local_tz).strftime("%Y-%m-%d %H:%M")

def strip_tags(html: Optional[str]) -> str:
    return TAG_RE.sub("", html or "")

def make_excerpt(description: Optional[str], content: Optional[str], length: int = 200) -> str:
    """Description, or the first characters of the tag-stripped content"""
    if description:
        return description
    if not content:
        return ""
    return strip_tags(content)[:length] + "..."
