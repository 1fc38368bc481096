from rest_framework import status


class WorkflowError(Exception):
    """Base class for failures surfaced by the post approval workflow."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "workflow_error"
    default_message = "Workflow error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(WorkflowError):
    code = "validation_error"
    default_message = "Invalid input"


class NotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Post not found"


class ForbiddenError(WorkflowError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "You do not have permission to perform this action"


class ConflictError(WorkflowError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "The post is not in a state that allows this action"
