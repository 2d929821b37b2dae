from worktime.models.entry_edit import EntryEdit
from worktime.models.proof_of_work import ProofOfWork
from worktime.models.time_entry import TimeEntry
from worktime.models.worker import Worker

__all__ = [
    "EntryEdit",
    "ProofOfWork",
    "TimeEntry",
    "Worker",
]
