# Models package — import all models here so Alembic can discover them.

from organizer.models.user import User  # noqa: F401
from organizer.models.workspace import Workspace, WorkspaceMember  # noqa: F401
from organizer.models.location import Location  # noqa: F401
from organizer.models.qr_code import QrCode  # noqa: F401
from organizer.models.box import Box  # noqa: F401
from organizer.models.audit import AuditEvent  # noqa: F401
