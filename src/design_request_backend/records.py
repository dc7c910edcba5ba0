from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from .models import DesignRequest, RequestStatus
from .validation import DesignRequestForm


def generate_request_id(now: datetime) -> str:
    """
    Build a request identifier that sorts roughly by creation time.

    The millisecond timestamp keeps ids readable and ordered; the random
    suffix keeps two submissions in the same millisecond from colliding.
    """
    millis = int(now.timestamp() * 1000)
    return f"{millis}-{secrets.token_hex(4)}"


def build_design_request(form: DesignRequestForm, now: Optional[datetime] = None) -> DesignRequest:
    created_at = now or datetime.now(timezone.utc)
    return DesignRequest(
        id=generate_request_id(created_at),
        client_name=form.client_name,
        email=form.email,
        phone_number=form.phone_number,
        project_type=form.project_type,
        timeline=form.timeline,
        budget=form.budget,
        design_description=form.design_description,
        reference_websites=form.reference_websites,
        color_preferences=form.color_preferences,
        style_preferences=form.style_preferences.value if form.style_preferences else "",
        key_features=form.key_features,
        status=RequestStatus.PENDING_REVIEW,
        created_at=created_at,
    )
