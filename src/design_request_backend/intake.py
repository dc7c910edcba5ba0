"""
Intake orchestration for design requests.

This module sequences one submission through the whole pipeline:

    validating -> building -> persisting -> rendering -> publishing -> mirroring -> done

Validation failures end in ``invalid`` and local ledger failures end in
``failed``; both are reported to the caller. Rendering, publishing and
mirroring are best-effort: a failure, a timeout or a missing collaborator is
logged and the pipeline moves on to the next stage. The PDF URL is attached
only when both rendering and publishing succeed.

The IntakeService class is the only entry point the HTTP layer uses.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional

from omegaconf import DictConfig

from .database import RequestMirror, build_mirror
from .errors import FieldValidationError, MirrorError, PersistenceError, PublishError, RenderError
from .ledger import RequestLedger
from .models import DesignRequest, IntakeStage, StageEvent, StageOutcome, SubmissionResult
from .records import build_design_request
from .rendering import MAX_TEXT_LENGTH, render_request_pdf
from .storage import ArtifactPublisher, build_publisher
from .utils import mask_email
from .validation import validate_submission

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Request submitted successfully"
INVALID_MESSAGE = "Please correct the highlighted fields and try again."
FAILURE_MESSAGE = "Failed to submit request"


class IntakeService:
    """
    Central coordinator for design request submissions.

    Collaborators are injected at construction time. ``publisher`` and
    ``mirror`` may be None, which is handled exactly like a failure of
    their stage.

    Attributes:
        ledger: Durable local store, the source of truth
        publisher: Uploads rendered PDFs, or None if storage is not configured
        mirror: Relational copy of each record, or None if not configured
        defer_artifacts: Respond after local persistence and run the
            remaining stages on a background worker
    """

    def __init__(
        self,
        ledger: RequestLedger,
        publisher: Optional[ArtifactPublisher] = None,
        mirror: Optional[RequestMirror] = None,
        defer_artifacts: bool = False,
        render_timezone: str = "UTC",
        max_text_length: int = MAX_TEXT_LENGTH,
        max_workers: int = 1,
    ) -> None:
        self.ledger = ledger
        self.publisher = publisher
        self.mirror = mirror
        self.defer_artifacts = defer_artifacts
        self.render_timezone = render_timezone
        self.max_text_length = max_text_length
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if defer_artifacts else None

    @classmethod
    def from_settings(cls, settings: DictConfig) -> "IntakeService":
        return cls(
            ledger=RequestLedger(Path(settings.ledger.path)),
            publisher=build_publisher(settings),
            mirror=build_mirror(settings),
            defer_artifacts=bool(settings.intake.defer_artifacts),
            render_timezone=settings.rendering.timezone,
            max_text_length=int(settings.rendering.max_text_length),
            max_workers=int(settings.intake.max_workers),
        )

    def submit(self, fields: Mapping[str, Any]) -> SubmissionResult:
        """
        Run one submission through the pipeline.

        Args:
            fields: Raw form fields keyed by their camelCase names

        Returns:
            SubmissionResult; ``success`` is False only for validation or
            local persistence failures
        """
        events: List[StageEvent] = []

        try:
            form = validate_submission(fields)
        except FieldValidationError as exc:
            logger.info(f"Submission rejected with {len(exc.violations)} violation(s)")
            _record(events, IntakeStage.VALIDATING, StageOutcome.FAILED, "; ".join(exc.messages))
            return SubmissionResult(
                success=False,
                stage=IntakeStage.INVALID,
                message=INVALID_MESSAGE,
                violations=exc.messages,
                events=events,
            )
        _record(events, IntakeStage.VALIDATING, StageOutcome.OK)

        record = build_design_request(form)
        _record(events, IntakeStage.BUILDING, StageOutcome.OK)

        try:
            self.ledger.append(record)
        except PersistenceError as exc:
            logger.error(f"Failed to persist request {record.id}: {exc}", exc_info=True)
            _record(events, IntakeStage.PERSISTING, StageOutcome.FAILED, str(exc))
            return SubmissionResult(success=False, stage=IntakeStage.FAILED, message=FAILURE_MESSAGE, events=events)
        _record(events, IntakeStage.PERSISTING, StageOutcome.OK)

        logger.info(
            f"New design request submitted: id={record.id} client={record.client_name} "
            f"project_type={record.project_type.value}"
        )

        if self._executor is not None:
            future = self._executor.submit(self._process_deferred, record)
            future.add_done_callback(_report_deferred)
            return SubmissionResult(
                success=True,
                stage=IntakeStage.PERSISTING,
                message=SUCCESS_MESSAGE,
                request_id=record.id,
                events=events,
            )

        record = self._process_artifacts(record, events)
        return SubmissionResult(
            success=True,
            stage=IntakeStage.DONE,
            message=SUCCESS_MESSAGE,
            request_id=record.id,
            pdf_url=record.pdf_url,
            events=events,
        )

    def _process_artifacts(self, record: DesignRequest, events: List[StageEvent]) -> DesignRequest:
        """
        Render, publish and mirror a persisted record; never raises.

        Returns:
            The record, with ``pdf_url`` attached if publishing succeeded
        """
        pdf_bytes = self._render(record, events)
        if pdf_bytes is not None:
            record = self._publish(record, pdf_bytes, events)
        else:
            _record(events, IntakeStage.PUBLISHING, StageOutcome.SKIPPED, "no document to publish")
        self._mirror(record, events)
        _record(events, IntakeStage.DONE, StageOutcome.OK)
        return record

    def _process_deferred(self, record: DesignRequest) -> DesignRequest:
        events: List[StageEvent] = []
        record = self._process_artifacts(record, events)
        for event in events:
            logger.info(
                f"Deferred stage for {record.id}: {event.stage.value}={event.outcome.value}"
                + (f" ({event.detail})" if event.detail else "")
            )
        return record

    def _render(self, record: DesignRequest, events: List[StageEvent]) -> Optional[bytes]:
        try:
            pdf_bytes = render_request_pdf(record, self.render_timezone, self.max_text_length)
        except RenderError as exc:
            logger.error(f"Error generating PDF for {record.id}: {exc}", exc_info=True)
            _record(events, IntakeStage.RENDERING, StageOutcome.FAILED, str(exc))
            return None
        _record(events, IntakeStage.RENDERING, StageOutcome.OK)
        return pdf_bytes

    def _publish(self, record: DesignRequest, pdf_bytes: bytes, events: List[StageEvent]) -> DesignRequest:
        if self.publisher is None:
            logger.warning("Object storage not configured, skipping PDF upload")
            _record(events, IntakeStage.PUBLISHING, StageOutcome.SKIPPED, "object storage not configured")
            return record

        file_name = f"design-request-{record.id}-{int(time.time() * 1000)}.pdf"
        try:
            pdf_url = self.publisher.publish(pdf_bytes, file_name)
        except PublishError as exc:
            logger.error(f"Error uploading PDF for {record.id}: {exc}", exc_info=True)
            _record(events, IntakeStage.PUBLISHING, StageOutcome.FAILED, str(exc))
            return record
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unexpected error uploading PDF for {record.id}: {exc}", exc_info=True)
            _record(events, IntakeStage.PUBLISHING, StageOutcome.FAILED, str(exc))
            return record

        record = record.with_pdf_url(pdf_url)
        try:
            self.ledger.attach_pdf_url(record.id, pdf_url)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"PDF published but ledger update failed for {record.id}: {exc}", exc_info=True)
        _record(events, IntakeStage.PUBLISHING, StageOutcome.OK, pdf_url)
        return record

    def _mirror(self, record: DesignRequest, events: List[StageEvent]) -> None:
        if self.mirror is None:
            logger.warning("Mirror database not configured, skipping relational copy")
            _record(events, IntakeStage.MIRRORING, StageOutcome.SKIPPED, "mirror not configured")
            return
        try:
            self.mirror.insert(record.to_mirror_row())
        except MirrorError as exc:
            logger.error(f"Error saving request {record.id} to mirror: {exc}", exc_info=True)
            _record(events, IntakeStage.MIRRORING, StageOutcome.FAILED, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unexpected mirror error for {record.id}: {exc}", exc_info=True)
            _record(events, IntakeStage.MIRRORING, StageOutcome.FAILED, str(exc))
            return
        _record(events, IntakeStage.MIRRORING, StageOutcome.OK)

    def list_requests(self) -> List[DesignRequest]:
        """
        Return every ledger record in insertion order with emails masked.

        Raises:
            PersistenceError: If the ledger cannot be read
        """
        return [
            record.model_copy(update={"email": mask_email(record.email)})
            for record in self.ledger.list_all()
        ]

    def shutdown(self, wait: bool = True) -> None:
        """Wait for deferred stages to finish and stop the worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


def _record(events: List[StageEvent], stage: IntakeStage, outcome: StageOutcome, detail: str = "") -> None:
    events.append(StageEvent(stage=stage, outcome=outcome, timestamp=datetime.now(timezone.utc), detail=detail))


def _report_deferred(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error(f"Deferred artifact processing failed: {exc}", exc_info=exc)
