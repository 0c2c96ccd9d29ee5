"""
HTML bodies for participant emails, rendered from the Jinja2 templates in
eventreg/templates. Rendering is pure: values in, string out.
"""

from datetime import datetime
from typing import Optional, Union

from jinja2 import Environment, PackageLoader, select_autoescape


def format_event_date(value: Union[datetime, str, None]) -> str:
    if value is None:
        return "TBA"
    if isinstance(value, datetime):
        return value.strftime("%A, %d %B %Y at %H:%M")
    return str(value)


templates = Environment(
    loader=PackageLoader("eventreg", "templates"),
    autoescape=select_autoescape(),
)
templates.filters["event_date"] = format_event_date


def registration_confirmation_template(
    name: str,
    event_name: str,
    event_date: Union[datetime, str, None],
    event_venue: Optional[str],
    ticket_number: str,
) -> str:
    return templates.get_template("registration_confirmation.html").render(
        name=name,
        event_name=event_name,
        event_date=event_date,
        event_venue=event_venue,
        ticket_number=ticket_number,
    )


def registration_subject(event_name: str) -> str:
    return f"Registration Confirmed - {event_name}"
