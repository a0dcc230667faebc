# SQLModel definitions, imported here to ensure metadata is populated for Alembic.
from .base import IDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .channel import Channel  # noqa: F401
from .thread import Thread  # noqa: F401
from .reply import Reply  # noqa: F401
from .subscription import Subscription  # noqa: F401
from .notification import Notification  # noqa: F401
from .activity import Activity  # noqa: F401
