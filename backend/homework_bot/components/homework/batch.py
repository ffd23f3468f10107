"""One polling pass over all qualified candidates."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from ...errors import (
    CandidateDataError,
    ConfigurationError,
    ProvisioningIncompleteError,
    TransportError,
    error_note,
)
from ...platform.request_context import reset_candidate_id, set_candidate_id
from ..recruitee.service import RecruiteeService
from ..recruitee.types import Candidate
from .locks import CandidateLocks
from .processor import CandidateProcessor, CandidateState, ProcessingOutcome, ProcessingResult

logger = logging.getLogger(__name__)


class BatchRunner:
    def __init__(
        self,
        recruitee: RecruiteeService,
        processor: CandidateProcessor,
        locks: CandidateLocks,
        *,
        max_workers: int = 8,
    ):
        self.recruitee = recruitee
        self.processor = processor
        self.locks = locks
        self.max_workers = max(max_workers, 1)

    def poll(self) -> dict:
        """Run one pass. A failure to list candidates is logged and reported, never raised."""
        try:
            return self.run()
        except Exception as exc:
            logger.exception("Homework poll failed before processing candidates")
            return {"status": "failed", "error": str(exc), "sent": 0, "skipped": 0, "busy": 0, "failed": 0}

    def run(self) -> dict:
        candidates = self.recruitee.get_all_qualified_candidates()
        logger.info("Processing %d qualified candidates", len(candidates))
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="homework") as pool:
            results = list(pool.map(self.run_for_candidate, candidates))

        summary = {"status": "ok", "sent": 0, "skipped": 0, "busy": 0, "failed": 0}
        for result in results:
            summary[result.outcome.value] += 1
        logger.info(
            "Homework poll finished: sent=%d skipped=%d busy=%d failed=%d",
            summary["sent"],
            summary["skipped"],
            summary["busy"],
            summary["failed"],
        )
        return summary

    def run_for_candidate(self, candidate: Candidate) -> ProcessingResult:
        token = set_candidate_id(candidate.id)
        try:
            with self.locks.hold(candidate.id, blocking=False) as acquired:
                if not acquired:
                    logger.info("Candidate %s is being handled elsewhere, retrying next poll", candidate.id)
                    return ProcessingResult(candidate.id, CandidateState.NOT_ELIGIBLE, ProcessingOutcome.BUSY)
                try:
                    return self.processor.process(candidate)
                except Exception as exc:
                    self.report_error(candidate.id, exc)
                    return ProcessingResult(
                        candidate.id, CandidateState.NOT_ELIGIBLE, ProcessingOutcome.FAILED, str(exc)
                    )
        finally:
            reset_candidate_id(token)

    def report_error(self, candidate_id: int, exc: Exception) -> None:
        cause = exc.cause if isinstance(exc, ProvisioningIncompleteError) else exc
        if isinstance(cause, CandidateDataError):
            logger.warning("Candidate %s needs attention: %s", candidate_id, exc)
        elif isinstance(cause, (ConfigurationError, TransportError)):
            logger.error("Homework cycle for candidate %s failed: %s", candidate_id, exc)
        else:
            logger.error("Unexpected error for candidate %s", candidate_id, exc_info=exc)

        try:
            self.recruitee.add_note(candidate_id, error_note(exc))
        except Exception:
            logger.exception("Failed to add error note for candidate %s", candidate_id)
