"""Shared pydantic field types."""

from datetime import time
from typing import Annotated

from pydantic import BeforeValidator, PlainSerializer

from clinic_booking.core.timeslots import format_time_of_day, parse_time_of_day

# Zero-padded "HH:MM" on the wire, datetime.time in Python
TimeOfDay = Annotated[
    time,
    BeforeValidator(parse_time_of_day),
    PlainSerializer(format_time_of_day, return_type=str),
]
