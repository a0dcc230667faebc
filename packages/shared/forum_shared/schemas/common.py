from enum import Enum
from pydantic import BaseModel


class NotificationType(str, Enum):
    MENTION = "mention"
    THREAD_UPDATED = "thread_updated"


class ActivityType(str, Enum):
    CREATED_THREAD = "created_thread"
    CREATED_REPLY = "created_reply"


class SubjectType(str, Enum):
    THREAD = "thread"
    REPLY = "reply"


# One-shot flash messages shown to browser clients after a redirect
FLASH_THREAD_PUBLISHED = "Your thread has been published!"
FLASH_THREAD_DELETED = "Your thread has been deleted!"
FLASH_REPLY_POSTED = "Your reply has been left."


class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int

