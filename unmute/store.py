"""In-memory complaint storage."""
import logging
from datetime import datetime, timedelta, UTC
from typing import Dict, Iterator, List, Optional, Union

from config import config
from schemas import Complaint, ComplaintStatus, StatusFilter

logger = logging.getLogger(__name__)


class ComplaintNotFound(KeyError):
    """Raised when no complaint has the requested id."""


class ComplaintStore:
    """Newest-first collection of complaints.

    Records are immutable; every mutation swaps in an updated copy looked
    up by id. Nothing here is persisted.
    """

    def __init__(self):
        self._order: List[str] = []
        self._complaints: Dict[str, Complaint] = {}

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Complaint]:
        return iter([self._complaints[complaint_id] for complaint_id in self._order])

    def __contains__(self, complaint_id: str) -> bool:
        return complaint_id in self._complaints

    def add(self, complaint: Complaint) -> Complaint:
        """Insert an existing record at the front."""
        if complaint.id in self._complaints:
            raise ValueError(f"Complaint {complaint.id} already stored")
        self._complaints[complaint.id] = complaint
        self._order.insert(0, complaint.id)
        return complaint

    def create(
        self,
        content: str,
        is_audio: bool = False,
        transcription: Optional[str] = None
    ) -> Complaint:
        """Create a PENDING complaint with the placeholder category."""
        complaint = Complaint(
            content=content,
            is_audio=is_audio,
            transcription=transcription if is_audio else None
        )
        self.add(complaint)
        logger.info(f"Complaint {complaint.id} created (audio={is_audio})")
        return complaint

    def get(self, complaint_id: str) -> Complaint:
        try:
            return self._complaints[complaint_id]
        except KeyError:
            raise ComplaintNotFound(complaint_id) from None

    def _replace(self, complaint: Complaint, **changes) -> Complaint:
        updated = complaint.model_copy(update=changes)
        self._complaints[complaint.id] = updated
        return updated

    def toggle_status(self, complaint_id: str) -> Complaint:
        """Flip PENDING <-> RESOLVED."""
        complaint = self.get(complaint_id)
        status = (
            ComplaintStatus.PENDING
            if complaint.status == ComplaintStatus.RESOLVED
            else ComplaintStatus.RESOLVED
        )
        return self._replace(complaint, status=status)

    def set_category(self, complaint_id: str, category: str) -> Optional[Complaint]:
        """Fill in the category of a freshly created complaint.

        Applied only if the complaint still exists and still carries the
        placeholder; otherwise nothing changes and None is returned.
        """
        complaint = self._complaints.get(complaint_id)
        if complaint is None:
            logger.warning(f"Complaint {complaint_id} disappeared before categorization finished")
            return None
        if complaint.is_categorized:
            return None
        return self._replace(complaint, category=category)

    def set_analysis(self, complaint_id: str, analysis: str) -> Complaint:
        return self._replace(self.get(complaint_id), ai_analysis=analysis)

    def filter(self, status: Union[StatusFilter, str] = StatusFilter.ALL) -> List[Complaint]:
        """Complaints matching `status`, newest first."""
        status = StatusFilter(status)
        complaints = list(self)
        if status == StatusFilter.ALL:
            return complaints
        return [c for c in complaints if c.status.value == status.value]


def seed_demo_data(store: ComplaintStore) -> None:
    """Load the example report shown on a fresh dashboard."""
    store.add(Complaint(
        content=(
            "Seniors in the hostel block B are forcing freshers to complete their "
            "assignments at night. It's happening every day after 11 PM."
        ),
        timestamp=datetime.now(UTC) - timedelta(days=1),
        status=ComplaintStatus.RESOLVED,
        category="Exclusion",
        is_audio=False
    ))


def build_store() -> ComplaintStore:
    store = ComplaintStore()
    if config.SEED_DEMO_DATA:
        seed_demo_data(store)
    return store
