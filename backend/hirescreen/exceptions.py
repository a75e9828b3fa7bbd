"""
Error taxonomy for the screening core.

Extraction and scoring errors are recovered inside the core (zero-valued
facts / results). Persistence, validation and lookup errors reach the caller.
"""


class ScreeningError(Exception):
    """Base class for every error raised by hirescreen."""


class ExtractionError(ScreeningError):
    """A resume document could not be turned into text."""


class ScoringError(ScreeningError):
    """Job or candidate data was unusable while scoring."""


class PersistenceError(ScreeningError):
    """The persistence collaborator rejected a write."""


class ValidationError(ScreeningError):
    """Caller input rejected before any work started."""


class InvalidStatusError(ValidationError):
    def __init__(self, value):
        super().__init__(f"Invalid candidate status: {value!r}")
        self.value = value


class NotFoundError(ScreeningError):
    pass


class JobNotFoundError(NotFoundError):
    def __init__(self, job_id):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class CandidateNotFoundError(NotFoundError):
    def __init__(self, candidate_id):
        super().__init__(f"Candidate {candidate_id} not found")
        self.candidate_id = candidate_id
