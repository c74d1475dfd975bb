# backend/chronicle/services/restore.py
import enum
import threading

from ..errors import ChronicleError, IntegrityError, StorageIOError
from ..schemas.archive import RestoreReport
from ..storage import Generation, Store
from ..utils.logging import service_logger
from .archive import ArchiveCodec, CandidateState


class RestoreState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SWAPPING = "swapping"
    ABORTED = "aborted"


class RestoreCoordinator:
    """Replaces the whole live store with a candidate state, all or nothing.

    The candidate is written into a fresh staging generation while normal
    operations are rejected as busy; the live generation is only replaced by
    an atomic pointer flip once staging has completed. Any failure before
    the flip discards the staging area and leaves the live store untouched.
    """

    def __init__(self, store: Store):
        self.store = store
        self._state = RestoreState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> RestoreState:
        return self._state

    def _transition(self, state: RestoreState) -> None:
        with self._state_lock:
            previous, self._state = self._state, state
        service_logger.info(f"Restore state {previous.value} -> {state.value}")

    def import_archive(self, data: bytes) -> RestoreReport:
        # Decoding happens before the store is locked or touched
        return self.restore(ArchiveCodec.parse(data))

    def restore(self, candidate: CandidateState) -> RestoreReport:
        with self.store.exclusive():
            try:
                self._transition(RestoreState.VALIDATING)
                problems = candidate.integrity_problems()
                if problems:
                    raise IntegrityError(problems)

                self._transition(RestoreState.SWAPPING)
                sequence_floors = self.store.live_sequence_floors()
                staged = self.store.stage()
                try:
                    self._populate(staged, candidate, sequence_floors)
                    live = self.store.swap(staged)
                except BaseException:
                    self.store.discard(staged)
                    raise
            except ChronicleError as e:
                self._transition(RestoreState.ABORTED)
                service_logger.error("Restore aborted; live store unchanged", extra={
                    "error_type": type(e).__name__,
                    "error": str(e)
                })
                raise
            except OSError as e:
                self._transition(RestoreState.ABORTED)
                service_logger.error("Restore aborted by storage failure; live store unchanged", extra={
                    "error": str(e)
                }, exc_info=True)
                raise StorageIOError(f"Restore failed: {e}") from e
            finally:
                self._transition(RestoreState.IDLE)

        report = RestoreReport(
            projects=len(candidate.projects),
            photos=len(candidate.photos),
            assets=len(candidate.blobs),
        )
        service_logger.info("Restore completed", extra={
            "generation": live.name,
            **report.model_dump(exclude={"success"})
        })
        return report

    @staticmethod
    def _populate(staged: Generation, candidate: CandidateState, sequence_floors: dict[str, int]) -> None:
        for content in candidate.blobs.values():
            staged.blobs.put(content)
        with staged.metadata() as metadata:
            metadata.load(candidate.projects, candidate.photos, sequence_floors)
