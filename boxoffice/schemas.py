"""
Typed request structures parsed at the HTTP boundary.
"""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from boxoffice.errors import ValidationError
from boxoffice.models import MIN_TICKETS, MAX_TICKETS

PURCHASE_FIELDS = ("first_name", "last_name", "email", "phone", "num_tickets")

MISSING_FIELDS_MESSAGE = "All fields are required."
TICKET_RANGE_MESSAGE = f"Please select between {MIN_TICKETS} and {MAX_TICKETS} tickets."


class PurchaseRequest(BaseModel):
    """Ticket purchase form."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    num_tickets: int = Field(ge=MIN_TICKETS, le=MAX_TICKETS)

    @classmethod
    def from_form(cls, data: Mapping[str, Any]) -> "PurchaseRequest":
        """
        Parse loosely structured form data.
        Raises ValidationError with a message fit for the buyer.
        """
        values = {}
        for field in PURCHASE_FIELDS:
            raw = data.get(field)
            value = raw.strip() if isinstance(raw, str) else ""
            if not value:
                raise ValidationError(MISSING_FIELDS_MESSAGE)
            values[field] = value

        try:
            return cls.model_validate(values)
        except PydanticValidationError as exc:
            if any(err["loc"] and err["loc"][0] == "num_tickets" for err in exc.errors()):
                raise ValidationError(TICKET_RANGE_MESSAGE) from exc
            raise ValidationError(MISSING_FIELDS_MESSAGE) from exc
