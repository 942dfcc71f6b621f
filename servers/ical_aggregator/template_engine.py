"""Jinja2 environment for HTML event listings.

Presentation of single values (summary elision, day headings, time ranges,
link filtering) lives here as template filters, so templates receive plain
Event models rather than pre-formatted strings.
"""

from datetime import date
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import UNKNOWN_TOWN, Event
from .time_range import format_time_range

SUMMARY_MAX_LENGTH = 55
ELLIPSIS = "…"


def elide(text: str, length: int = SUMMARY_MAX_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + ELLIPSIS


def day_heading(day: date) -> str:
    """Format a day as e.g. 'Monday, October 19'."""
    return f"{day:%A}, {day:%B} {day.day}"


def link_url(url: Optional[str]) -> Optional[str]:
    """Only link to http(s) URLs."""
    if url and url.lower().startswith(("http://", "https://")):
        return url
    return None


def event_time_range(event: Event) -> str:
    return format_time_range(event.start, event.end)


def event_town(event: Event) -> str:
    return event.town or UNKNOWN_TOWN


class TemplateEngine:
    """Render event listing templates using Jinja2."""

    def __init__(self, template_dir: Path | None = None):
        """Initialize template engine with template directory.

        Args:
            template_dir: Path to templates directory.
                         Defaults to the package's templates/ folder.
        """
        if template_dir is None:
            template_dir = Path(__file__).parent / "templates"

        self.template_dir = template_dir
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters.update({
            "elide": elide,
            "day_heading": day_heading,
            "link_url": link_url,
            "time_range": event_time_range,
            "town": event_town,
        })

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render a template with the given context.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        template = self.env.get_template(template_name)
        return template.render(**context)
