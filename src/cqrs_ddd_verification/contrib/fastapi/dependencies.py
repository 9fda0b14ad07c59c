"""FastAPI dependencies for tenant and subject resolution.

The defaults read plain headers. Production apps should pass dependencies
backed by their authentication layer to :func:`create_verification_router`.
"""

from dataclasses import dataclass, replace

from fastapi import Header, HTTPException, Request

from ...domain.enums import SubjectType
from ...request_context import RequestContext


@dataclass(frozen=True)
class SubjectRef:
    """The authenticated account a device route acts on."""

    subject_id: str
    subject_type: SubjectType


def get_tenant_id(x_tenant_id: str | None = Header(default=None)) -> str:
    """Tenant id from the ``X-Tenant-ID`` header, or 400."""
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header required")
    return x_tenant_id


def get_subject(
    x_subject_id: str | None = Header(default=None),
    x_subject_type: SubjectType | None = Header(default=None),
) -> SubjectRef:
    """Subject from ``X-Subject-ID`` / ``X-Subject-Type`` headers, or 401."""
    if not x_subject_id or x_subject_type is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return SubjectRef(subject_id=x_subject_id, subject_type=x_subject_type)


def get_request_context(request: Request) -> RequestContext:
    """Request metadata, falling back to the peer address for the IP."""
    context = RequestContext.from_headers(request.headers)
    if context.ip_address is None and request.client is not None:
        context = replace(context, ip_address=request.client.host)
    return context


__all__: list[str] = [
    "SubjectRef",
    "get_request_context",
    "get_subject",
    "get_tenant_id",
]
