"""
Candidate lifecycle controller.

Applies screening outcomes and manual status changes to CandidateRecords,
keeping the status history, notes and communications logs append-only and
emitting a status-change event whenever the status actually moves.

Every operation returns a new record; persisting it is the caller's job,
except in `bulk_screen()`, which saves each record through a CandidateStore
as soon as it is scored.
"""

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from .config import AUTO_ADVANCE_STATUSES, BULK_SCREEN_WORKERS, SCORING_POLICY
from .exceptions import ScoringError, ValidationError
from .notifications import (
    LoggingNotifier, NotificationConfig, Notifier, build_status_change_event,
)
from .schemas import (
    CandidateFacts, CandidateRecord, CandidateStatus, Communication,
    JobSpec, Note, ScreeningResult, StatusChange,
)
from .scoring import ScoringPolicy, failed_result, get_policy, screen
from .utils import log_performance_metrics

logger = logging.getLogger(__name__)

Annotator = Callable[[ScreeningResult, CandidateFacts, JobSpec], ScreeningResult]


class CandidateStore(Protocol):
    """Persistence collaborator: idempotent upsert keyed by candidate id."""

    def save(self, candidate: CandidateRecord) -> None:
        ...


@dataclass(frozen=True)
class ScreeningOutcome:
    candidate_id: Optional[int]
    succeeded: bool
    result: Optional[ScreeningResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BulkScreenReport:
    job_id: Optional[int]
    outcomes: tuple[ScreeningOutcome, ...] = field(default_factory=tuple)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def message(self) -> str:
        return f"Screening completed. Processed {self.succeeded} out of {self.attempted} resumes."


def parse_advance_statuses(values: Iterable[str]) -> Optional[frozenset[CandidateStatus]]:
    """Config values → statuses screening may advance; None means any."""
    values = list(values)
    if "*" in values:
        return None
    return frozenset(CandidateStatus.parse(v) for v in values)


class LifecycleController:
    def __init__(
        self,
        policy: Optional[ScoringPolicy] = None,
        notifier: Optional[Notifier] = None,
        notification_config: Optional[NotificationConfig] = None,
        advance_from: Optional[Iterable[CandidateStatus]] = (CandidateStatus.NEW,),
        max_workers: int = BULK_SCREEN_WORKERS,
        annotator: Optional[Annotator] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.policy = policy or get_policy("primary")
        self.notifier = notifier
        self.notification_config = notification_config or NotificationConfig.from_settings()
        self.advance_from = None if advance_from is None else frozenset(advance_from)
        self.max_workers = max(1, max_workers)
        self.annotator = annotator
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        notifier: Optional[Notifier] = None,
        annotator: Optional[Annotator] = None,
    ) -> "LifecycleController":
        return cls(
            policy=get_policy(SCORING_POLICY),
            notifier=notifier or LoggingNotifier(),
            notification_config=NotificationConfig.from_settings(),
            advance_from=parse_advance_statuses(AUTO_ADVANCE_STATUSES),
            max_workers=BULK_SCREEN_WORKERS,
            annotator=annotator,
        )

    # ── Status transitions ──────────────────────────────────────────────

    def may_advance(self, status: CandidateStatus) -> bool:
        return self.advance_from is None or status in self.advance_from

    def _transition(
        self,
        candidate: CandidateRecord,
        new_status: CandidateStatus,
        reason: Optional[str] = None,
        changed_by: Optional[str] = None,
        feedback: Optional[str] = None,
        job_title: str = "",
    ) -> CandidateRecord:
        previous = candidate.status
        entry = StatusChange(new_status, self.clock(), reason, changed_by)
        updated = replace(
            candidate,
            status=new_status,
            status_history=candidate.status_history + (entry,),
        )
        if previous == new_status:
            return updated
        return self._notify(updated, previous, job_title, feedback)

    def _notify(
        self,
        candidate: CandidateRecord,
        previous: CandidateStatus,
        job_title: str,
        feedback: Optional[str],
    ) -> CandidateRecord:
        if self.notifier is None or not self.notification_config.enabled:
            return candidate

        event = build_status_change_event(
            candidate, job_title, previous.value, candidate.status.value,
            self.notification_config, feedback,
        )
        try:
            self.notifier.notify(event)
            delivery = "sent"
        except Exception:
            logger.exception("Status notification failed for candidate %s", candidate.id)
            delivery = "failed"

        entry = Communication(
            type="status_update",
            subject=event.subject,
            sent_at=self.clock(),
            status=delivery,
            message=feedback or "",
            metadata={
                "recipient_email": event.recipient_email,
                "job_title": job_title,
                "previous_status": previous.value,
                "new_status": candidate.status.value,
            },
        )
        return replace(candidate, communications=candidate.communications + (entry,))

    def change_status(
        self,
        candidate: CandidateRecord,
        status,
        reason: Optional[str] = None,
        changed_by: Optional[str] = None,
        feedback: Optional[str] = None,
        job_title: str = "",
    ) -> CandidateRecord:
        """Manually move a candidate to `status`. Raises InvalidStatusError first."""
        new_status = CandidateStatus.parse(status)
        logger.info(
            "Candidate %s: %s -> %s", candidate.id, candidate.status.value, new_status.value,
        )
        return self._transition(candidate, new_status, reason, changed_by, feedback, job_title)

    def add_note(
        self,
        candidate: CandidateRecord,
        content: str,
        author: Optional[str] = None,
    ) -> CandidateRecord:
        if not content or not content.strip():
            raise ValidationError("Note content is required")
        note = Note(content=content.strip(), created_at=self.clock(), created_by=author)
        return replace(candidate, notes=candidate.notes + (note,))

    # ── Screening ───────────────────────────────────────────────────────

    def apply_screening(
        self,
        candidate: CandidateRecord,
        result: ScreeningResult,
        job_title: str = "",
    ) -> CandidateRecord:
        """
        Store `result` on the candidate and, if its current status allows,
        move it to "screened". Candidates a recruiter already moved past the
        configured statuses keep their status; only the score is refreshed.
        """
        updated = replace(candidate, screening=result, score=result.overall_score)
        if not self.may_advance(candidate.status):
            logger.info(
                "Candidate %s rescored to %d, status %s kept",
                candidate.id, result.overall_score, candidate.status.value,
            )
            return updated
        return self._transition(
            updated, CandidateStatus.SCREENED,
            reason=f"Automated screening ({result.policy})", job_title=job_title,
        )

    def score(
        self,
        candidate: CandidateRecord,
        job: JobSpec,
        strict: bool = False,
    ) -> ScreeningResult:
        """
        Score the candidate's stored facts against `job`.

        Unreadable facts yield a zero result listing the job's skills, or
        raise ScoringError when `strict` is set (bulk mode reports them).
        """
        facts = candidate.facts
        if not isinstance(facts, CandidateFacts):
            if strict:
                raise ScoringError(f"Candidate {candidate.id} has no readable resume facts")
            logger.warning("Candidate %s has no readable resume facts; scoring as zero", candidate.id)
            return failed_result(job, self.policy.name)

        result = screen(facts, job, self.policy)
        if self.annotator is not None:
            result = self.annotator(result, facts, job)
        return result

    def screen(
        self,
        candidate: CandidateRecord,
        job: JobSpec,
        strict: bool = False,
    ) -> CandidateRecord:
        result = self.score(candidate, job, strict=strict)
        return self.apply_screening(candidate, result, job_title=job.title)

    def bulk_screen(
        self,
        candidates: Iterable[CandidateRecord],
        job: JobSpec,
        store: CandidateStore,
    ) -> BulkScreenReport:
        """
        Screen and save every candidate still in "new", at most
        `max_workers` at a time. A failing candidate is reported in the
        outcome list and never stops the others.
        """
        pending = [c for c in candidates if c.status == CandidateStatus.NEW]
        start = time.time()

        def _screen_and_save(candidate: CandidateRecord) -> CandidateRecord:
            updated = self.screen(candidate, job, strict=True)
            store.save(updated)
            return updated

        results: dict[int, ScreeningOutcome] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {pool.submit(_screen_and_save, c): i for i, c in enumerate(pending)}
            for future in as_completed(futures):
                index = futures[future]
                candidate = pending[index]
                try:
                    updated = future.result()
                    results[index] = ScreeningOutcome(candidate.id, True, result=updated.screening)
                except Exception as e:
                    logger.error("Error screening candidate %s: %s", candidate.id, e)
                    logger.debug("Screening failure detail", exc_info=True)
                    results[index] = ScreeningOutcome(candidate.id, False, error=str(e))

        report = BulkScreenReport(job.id, tuple(results[i] for i in range(len(pending))))
        log_performance_metrics(
            f"Bulk screening job {job.id} ({report.succeeded}/{report.attempted})",
            time.time() - start,
            success=report.failed == 0,
        )
        return report


def pipeline_stats(candidates: Iterable[CandidateRecord]) -> dict:
    """Per-status counts plus stage-to-stage conversion percentages."""
    counts = {status.value: 0 for status in CandidateStatus}
    total = 0
    for candidate in candidates:
        counts[candidate.status.value] += 1
        total += 1

    def _rate(numerator: int, denominator: int) -> float:
        return round(100 * numerator / denominator, 1) if denominator else 0

    return {
        "total": total,
        **counts,
        "conversion_rates": {
            "screened": _rate(counts["screened"], total),
            "shortlisted": _rate(counts["shortlisted"], counts["screened"]),
            "interview": _rate(counts["interview"], counts["shortlisted"]),
        },
    }
