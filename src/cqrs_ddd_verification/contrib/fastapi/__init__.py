"""FastAPI integration for cqrs-ddd-verification.

Requires the ``fastapi`` extra: ``pip install 'cqrs-ddd-verification[fastapi]'``.
"""

from .dependencies import SubjectRef, get_request_context, get_subject, get_tenant_id
from .router import ISSUE_STATUS, VERIFY_STATUS, create_verification_router

__all__: list[str] = [
    "ISSUE_STATUS",
    "VERIFY_STATUS",
    "SubjectRef",
    "create_verification_router",
    "get_request_context",
    "get_subject",
    "get_tenant_id",
]
