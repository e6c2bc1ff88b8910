"""
Shared pydantic bases for the booking API.

Responses are built from ORM rows and service result dicts. Requests
refuse keys they do not declare and trim surrounding whitespace first, so
a blank identifier fails its length check instead of reaching the store.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints

# ULIDs are 26 characters; ids from the course system are never longer.
Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=26)]


class StrictModel(BaseModel):
    """Response base: reads attributes off ORM rows, rejects undeclared fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, from_attributes=True)


class StrictRequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)
