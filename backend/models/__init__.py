"""ORM models.  Importing this package registers every table on Base.metadata."""

from models.user import User  # noqa: F401
from models.post import Post  # noqa: F401
from models.comment import Comment  # noqa: F401
from models.resource import Resource  # noqa: F401
from models.message import Message  # noqa: F401
from models.follow import Follow  # noqa: F401
