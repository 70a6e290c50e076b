"""
Jinja2 templates shared by the HTML routes.
"""

from datetime import datetime
from typing import Optional
from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from boxoffice.config import settings
from boxoffice.services.page_shell import PageShell

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_cents(amount: int) -> str:
    """5000 -> $50.00"""
    return f"${int(amount) / 100:,.2f}"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%b %d, %Y %I:%M %p")


templates.env.filters["cents"] = format_cents
templates.env.filters["timestamp"] = format_timestamp


def render_page(request: Request, name: str, title: str, shell: PageShell, **context):
    """Render a public page inside the branding shell."""
    return templates.TemplateResponse(
        request,
        name,
        {
            "title": title,
            "shell": shell,
            "site_name": settings.site_name,
            **context,
        },
    )
