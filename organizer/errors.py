"""Domain error taxonomy.

Services raise the most specific error at the point of detection. Each
error carries a stable machine `code` and a `details` dict (field name,
limit, conflicting id) so callers can correct their input. Transport
status codes are assigned by the blueprint layer, never here.
"""


class OrganizerError(Exception):
    """Base class for all errors raised by the service layer."""

    code = "error"
    default_message = "The request could not be completed."

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(OrganizerError):
    """Resource is absent, or the principal cannot see it.

    Used for both cases so a caller cannot tell whether a workspace, box,
    location or QR code exists.
    """

    code = "not_found"
    default_message = "Resource not found."


class AuthorizationError(OrganizerError):
    code = "forbidden"
    default_message = "You do not have access to this resource."


class InsufficientPermissionsError(AuthorizationError):
    """Principal is a member of the workspace but the role is too low."""

    code = "insufficient_permissions"
    default_message = "Your role does not allow this action."


class InvalidOperationError(OrganizerError):
    """The operation would violate an invariant (e.g. the last owner)."""

    code = "invalid_operation"
    default_message = "This operation is not allowed."


class DuplicateMemberError(OrganizerError):
    code = "duplicate_member"
    default_message = "User is already a member of this workspace."


class MaxDepthExceededError(OrganizerError):
    code = "max_depth_exceeded"
    default_message = "Maximum location depth exceeded."


class SiblingNameConflictError(OrganizerError):
    code = "sibling_name_conflict"
    default_message = "A location with this name already exists at this level."


class WorkspaceMismatchError(OrganizerError):
    """A referenced resource belongs to a different workspace."""

    code = "workspace_mismatch"
    default_message = "Referenced resource belongs to a different workspace."


class ConflictError(OrganizerError):
    code = "conflict"
    default_message = "The resource was modified concurrently."


class ValidationError(OrganizerError):
    code = "validation_error"
    default_message = "Invalid input."
