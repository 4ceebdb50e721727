"""
Nudge decision engine feature package.

Everything for deciding whether to nudge a networking thread lives here:
domain models, the pure decision pipeline, optional AI enrichment, the
learning state repository, the service layer and the HTTP router.
"""

from .api.router import router as nudges_router  # noqa: F401
from .domain.models import Decision, LearningState, Thread, UserFocus  # noqa: F401
from .services.nudge_service import NudgeService, get_nudge_service  # noqa: F401
