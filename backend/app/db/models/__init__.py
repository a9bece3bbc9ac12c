"""Re-export all models so Base.metadata sees them."""

from app.db.models.brief import BriefFeedbackRecord, BriefRecord
from app.db.models.brief_draft import BriefDraftRecord, BriefQuestionResponseRecord

__all__ = [
    "BriefDraftRecord",
    "BriefFeedbackRecord",
    "BriefQuestionResponseRecord",
    "BriefRecord",
]
