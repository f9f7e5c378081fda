from app.models.base import Base  # noqa: F401

from app.models.office import Office  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.listing import Listing  # noqa: F401
from app.models.contact import Contact  # noqa: F401
from app.models.assignment import AgentAssignment  # noqa: F401
from app.models.contract import Contract  # noqa: F401
from app.models.share_link import ShareLink  # noqa: F401
from app.models.activity_log import ActivityLogEntry, PriceHistoryEntry  # noqa: F401
from app.models.notification import Notification  # noqa: F401
