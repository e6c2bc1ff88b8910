# sessionbook/services/course_policy.py
"""
Per-course scheduling policy.

Course custom fields arrive as raw ``shortname -> text`` pairs. Only the
shortnames listed in ``FIELD_MAP`` are bound; anything else is ignored.
"""

import logging
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import ValidationException

logger = logging.getLogger(__name__)

FIELD_MAP: Dict[str, str] = {
    "postingwait": "posting_wait_days",
    "firstsession": "first_session_hour",
    "lastsession": "last_session_hour",
    "weekslookahead": "weeks_lookahead",
    "maxlanes": "max_lanes",
}


class CoursePolicy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    posting_wait_days: int = Field(ge=0)
    first_session_hour: int = Field(ge=0, le=23)
    last_session_hour: int = Field(ge=0, le=23)
    weeks_lookahead: int = Field(ge=0)
    max_lanes: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_hours(self) -> "CoursePolicy":
        if self.last_session_hour < self.first_session_hour:
            raise ValueError("lastsession must not be earlier than firstsession")
        return self

    @classmethod
    def defaults(cls, config: Optional[Settings] = None) -> "CoursePolicy":
        config = config or default_settings
        return cls(
            posting_wait_days=config.posting_wait_days,
            first_session_hour=config.first_session_hour,
            last_session_hour=config.last_session_hour,
            weeks_lookahead=config.weeks_lookahead,
            max_lanes=config.max_lanes,
        )

    @classmethod
    def from_fields(
        cls, fields: Mapping[str, Optional[str]], config: Optional[Settings] = None
    ) -> "CoursePolicy":
        """
        Build a policy from raw course fields over the configured defaults.

        Empty values keep the default. Unknown shortnames are logged and
        skipped. Values that do not parse raise ValidationException.
        """
        values = cls.defaults(config).model_dump()
        for shortname, raw in fields.items():
            attribute = FIELD_MAP.get(shortname)
            if attribute is None:
                logger.debug("Ignoring unmapped course field %r", shortname)
                continue
            if raw is None or not str(raw).strip():
                continue
            values[attribute] = str(raw).strip()
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ValidationException(
                "Invalid course configuration",
                code="INVALID_COURSE_POLICY",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc
