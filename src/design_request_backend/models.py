from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProjectType(str, Enum):
    WEBSITE = "website"
    REDESIGN = "redesign"
    LANDING = "landing"
    ECOMMERCE = "ecommerce"
    OTHER = "other"


class Timeline(str, Enum):
    ASAP = "asap"
    ONE_MONTH = "1month"
    TWO_TO_THREE_MONTHS = "2-3months"
    FLEXIBLE = "flexible"


class Budget(str, Enum):
    FROM_200 = "200-500"
    FROM_500 = "500-1000"
    FROM_1000 = "1000-2500"
    FROM_2500 = "2500-5000"
    FROM_5000 = "5000+"


class StylePreference(str, Enum):
    MODERN = "modern"
    MINIMALIST = "minimalist"
    CLASSIC = "classic"
    BOLD = "bold"
    PLAYFUL = "playful"
    ELEGANT = "elegant"
    CORPORATE = "corporate"
    CREATIVE = "creative"


class RequestStatus(str, Enum):
    PENDING_REVIEW = "pending_review"


class IntakeStage(str, Enum):
    VALIDATING = "validating"
    BUILDING = "building"
    PERSISTING = "persisting"
    RENDERING = "rendering"
    PUBLISHING = "publishing"
    MIRRORING = "mirroring"
    DONE = "done"
    INVALID = "invalid"
    FAILED = "failed"


class StageOutcome(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class DesignRequest(BaseModel):
    """
    Canonical record of one submitted design request.

    Attributes are snake_case in Python and camelCase on the wire and in the
    ledger file. The model is frozen: attaching the PDF reference produces a
    copy through ``with_pdf_url`` rather than mutating the record.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    client_name: str
    email: str
    phone_number: str = ""
    project_type: ProjectType
    timeline: Timeline
    budget: Budget
    design_description: str
    reference_websites: str = ""
    color_preferences: str = ""
    style_preferences: str = ""
    key_features: str = ""
    status: RequestStatus = RequestStatus.PENDING_REVIEW
    pdf_url: Optional[str] = None
    created_at: datetime

    def with_pdf_url(self, pdf_url: str) -> "DesignRequest":
        return self.model_copy(update={"pdf_url": pdf_url})

    def to_record(self) -> Dict[str, Any]:
        """Serialize for the local ledger (camelCase, JSON-ready)."""
        return self.model_dump(mode="json", by_alias=True)

    def to_mirror_row(self) -> Dict[str, Any]:
        """Flatten into a relational row; empty optional text becomes NULL."""
        row = self.model_dump(mode="json")
        for column in ("phone_number", "reference_websites", "color_preferences", "style_preferences", "key_features"):
            row[column] = row[column] or None
        return row


class StageEvent(BaseModel):
    stage: IntakeStage
    outcome: StageOutcome
    timestamp: datetime
    detail: str = ""


class SubmissionResult(BaseModel):
    success: bool
    stage: IntakeStage
    message: str
    request_id: Optional[str] = None
    pdf_url: Optional[str] = None
    violations: List[str] = Field(default_factory=list)
    events: List[StageEvent] = Field(default_factory=list)
