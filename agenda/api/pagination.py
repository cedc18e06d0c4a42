from datetime import date
from typing import Annotated

from fastapi import Query

LimitParam = Annotated[int, Query(ge=1, le=100)]
OffsetParam = Annotated[int, Query(ge=0)]
DateFromParam = Annotated[date | None, Query(description="Only bookings starting on or after this day (UTC)")]
DateToParam = Annotated[date | None, Query(description="Only bookings starting on or before this day (UTC)")]
