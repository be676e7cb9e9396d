"""
Todo Calendar data models.

Pydantic models for stored documents and API request/response bodies.
"""

# Completion models
from todocal.models.completion import (
    COMPLETIONS_TYPE,
    CompletionsDocument,
    CompletionsRequest,
)

# Task models
from todocal.models.task import (
    OperationResponse,
    TaskCreateRequest,
    TaskCreateResponse,
    TaskDeleteRequest,
    TaskDocument,
    TaskId,
    TaskUpdateRequest,
)

# User models
from todocal.models.user import (
    AuthenticatedUser,
    IdentityClaims,
    ProfileImage,
    UserProfile,
    VerifyResponse,
)

__all__ = [
    # Completion models
    "COMPLETIONS_TYPE",
    "CompletionsDocument",
    "CompletionsRequest",
    # Task models
    "OperationResponse",
    "TaskCreateRequest",
    "TaskCreateResponse",
    "TaskDeleteRequest",
    "TaskDocument",
    "TaskId",
    "TaskUpdateRequest",
    # User models
    "AuthenticatedUser",
    "IdentityClaims",
    "ProfileImage",
    "UserProfile",
    "VerifyResponse",
]
