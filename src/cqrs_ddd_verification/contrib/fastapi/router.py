"""FastAPI router exposing issue, verify, resend and device management."""

from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Response

from ...devices import DeviceTrustManager
from ...domain.enums import IssueOutcome, Purpose, VerifyOutcome
from ...domain.results import IssueResult
from ...engine import IssueRequest, VerificationEngine
from ...request_context import RequestContext
from .dependencies import SubjectRef, get_request_context, get_subject, get_tenant_id
from .schemas import (
    DeviceResponse,
    IssueResponse,
    ResendRequest,
    RevokeAllResponse,
    SendRequest,
    VerifyRequest,
    VerifyResponse,
)

ISSUE_STATUS: dict[IssueOutcome, int] = {
    IssueOutcome.ISSUED: 200,
    IssueOutcome.RATE_LIMITED: 429,
    IssueOutcome.DELIVERY_FAILED: 502,
    IssueOutcome.INVALID_CHALLENGE: 404,
    IssueOutcome.SUBJECT_NOT_FOUND: 404,
    IssueOutcome.DESTINATION_UNAVAILABLE: 422,
    IssueOutcome.ALREADY_VERIFIED: 400,
}

VERIFY_STATUS: dict[VerifyOutcome, int] = {
    VerifyOutcome.VERIFIED: 200,
    VerifyOutcome.INVALID_CHALLENGE: 404,
    VerifyOutcome.EXPIRED: 400,
    VerifyOutcome.LOCKED: 400,
    VerifyOutcome.INVALID_CODE: 400,
    VerifyOutcome.ALREADY_VERIFIED: 400,
}


def _issue_response(result: IssueResult, response: Response) -> IssueResponse:
    response.status_code = ISSUE_STATUS[result.outcome]
    if result.outcome is IssueOutcome.RATE_LIMITED:
        response.headers["Retry-After"] = str(result.retry_after_seconds)
    return IssueResponse.from_result(result)


def create_verification_router(
    engine: VerificationEngine,
    device_trust: DeviceTrustManager | None = None,
    *,
    tenant_dependency: Callable[..., str] = get_tenant_id,
    subject_dependency: Callable[..., SubjectRef] = get_subject,
    prefix: str = "",
    tags: list[str] | None = None,
) -> APIRouter:
    """Build the verification router.

    Args:
        engine: Engine serving the challenge routes.
        device_trust: Enables ``rememberDevice`` and the ``/devices`` routes.
        tenant_dependency: Resolves the caller's tenant id.
        subject_dependency: Resolves the authenticated subject for the
            device routes.
        prefix: Router prefix.
        tags: OpenAPI tags.

    Example:
        ```python
        app.include_router(
            create_verification_router(engine, device_trust, prefix="/2fa"),
        )
        ```
    """
    router = APIRouter(prefix=prefix, tags=tags or ["verification"])

    @router.post("/send", response_model=IssueResponse)
    async def send(
        body: SendRequest,
        response: Response,
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        context: RequestContext = Depends(get_request_context),  # noqa: B008
    ) -> IssueResponse:
        result = await engine.request_challenge(
            IssueRequest(
                subject_id=body.subject_id,
                subject_type=body.subject_type,
                tenant_id=tenant_id,
                channel=body.channel,
                purpose=body.purpose,
            ),
            context,
        )
        return _issue_response(result, response)

    @router.post("/resend", response_model=IssueResponse)
    async def resend(
        body: ResendRequest,
        response: Response,
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        context: RequestContext = Depends(get_request_context),  # noqa: B008
    ) -> IssueResponse:
        result = await engine.resend(body.challenge_id, tenant_id=tenant_id, context=context)
        return _issue_response(result, response)

    @router.post("/verify", response_model=VerifyResponse)
    async def verify(
        body: VerifyRequest,
        response: Response,
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        context: RequestContext = Depends(get_request_context),  # noqa: B008
    ) -> VerifyResponse:
        result = await engine.verify(body.challenge_id, body.code, tenant_id=tenant_id)
        response.status_code = VERIFY_STATUS[result.outcome]

        trusted = False
        if (
            result.ok
            and body.remember_device
            and device_trust is not None
            and result.purpose is Purpose.LOGIN
            and result.subject_id is not None
            and result.subject_type is not None
        ):
            await device_trust.trust(tenant_id, result.subject_id, result.subject_type, context)
            trusted = True
        return VerifyResponse.from_result(result, device_trusted=trusted)

    if device_trust is None:
        return router
    manager: DeviceTrustManager = device_trust

    @router.get("/devices", response_model=list[DeviceResponse])
    async def list_devices(
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        subject: SubjectRef = Depends(subject_dependency),  # noqa: B008
    ) -> list[DeviceResponse]:
        devices = await manager.list_devices(
            tenant_id, subject.subject_id, subject.subject_type
        )
        return [DeviceResponse.from_device(d) for d in devices]

    @router.delete("/devices/{device_id}", status_code=204)
    async def revoke_device(
        device_id: str,
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        subject: SubjectRef = Depends(subject_dependency),  # noqa: B008
    ) -> Response:
        removed = await manager.revoke(
            tenant_id, subject.subject_id, subject.subject_type, device_id
        )
        if not removed:
            raise HTTPException(status_code=404, detail="Device not found")
        return Response(status_code=204)

    @router.delete("/devices", response_model=RevokeAllResponse)
    async def revoke_all_devices(
        tenant_id: str = Depends(tenant_dependency),  # noqa: B008
        subject: SubjectRef = Depends(subject_dependency),  # noqa: B008
    ) -> RevokeAllResponse:
        removed = await manager.revoke_all(
            tenant_id, subject.subject_id, subject.subject_type
        )
        return RevokeAllResponse(removed=removed)

    return router


__all__: list[str] = ["create_verification_router", "ISSUE_STATUS", "VERIFY_STATUS"]
