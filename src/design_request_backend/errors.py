"""
Error taxonomy for the design request intake pipeline.

Only FieldValidationError and PersistenceError change what the caller sees.
RenderError, PublishError and MirrorError are absorbed by the intake
orchestrator. AuthorizationError short-circuits the admin listing before any
core logic runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class IntakeError(Exception):
    """Base class for all intake pipeline errors."""


class FieldValidationError(IntakeError):
    def __init__(self, violations: List[FieldViolation]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(v.message for v in self.violations))

    @property
    def messages(self) -> List[str]:
        return [violation.message for violation in self.violations]


class PersistenceError(IntakeError):
    """The local ledger could not durably save or read records."""


class RenderError(IntakeError):
    """The PDF document could not be produced."""


class PublishError(IntakeError):
    """The rendered artifact could not be uploaded to object storage."""


class MirrorError(IntakeError):
    """The record could not be inserted into the relational mirror."""


class AuthorizationError(IntakeError):
    """The caller is not allowed to use the administrative listing."""
