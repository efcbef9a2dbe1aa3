"""
accessgate/features/roles/resolution_client.py

Client for the authoritative role resolution service.

Local verdicts from the access resolver are advisory; security-sensitive,
state-changing operations must confirm the caller's role here. Every call
is a fresh round trip: no caching, no retries, no backoff. Failures surface
as typed errors so callers can show the server's message.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from accessgate.core.config import settings
from accessgate.core.errors import AppError, RemoteError, UnauthenticatedError
from accessgate.features.roles.session import is_token_active
from accessgate.models.resolved_role import ImpersonationTarget, ResolvedRole, ResolveRoleRequest
from accessgate.models.roles import OrgRole, role_name


logger = logging.getLogger(__name__)

SessionProvider = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class RoleResolutionClient:
    """
    Resolves {system role, org role, effective role} for the current session.

    Args:
        base_url: full URL of the resolve-role endpoint
        session_provider: returns the caller's session token (sync or async);
            None means there is no session
        api_key: optional project key sent as the "apikey" header
        timeout: request timeout in seconds
        transport: optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        session_provider: SessionProvider,
        *,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.session_provider = session_provider
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.ROLE_RESOLUTION_TIMEOUT_SECONDS
        self.transport = transport

    async def _session_token(self) -> str:
        token = self.session_provider()
        if inspect.isawaitable(token):
            token = await token
        if not is_token_active(token):
            # Never fall back to anonymous resolution
            raise UnauthenticatedError("Not authenticated")
        return token

    def _headers(self, token: str) -> dict:
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
        return headers

    async def resolve_role(
        self,
        organization_id: Optional[str] = None,
        impersonation: Optional[ImpersonationTarget] = None,
    ) -> ResolvedRole:
        """
        Ask the service for the caller's role in organization_id.

        When impersonation is given, the request names the target
        organization and owner; the service decides whether it applies.

        Raises:
            UnauthenticatedError: no active session token
            RemoteError: transport failure, non-2xx status, error payload,
                or a payload that does not describe a resolved role
        """
        token = await self._session_token()
        request = ResolveRoleRequest(
            organization_id=organization_id,
            is_impersonating=impersonation is not None,
            impersonation_target=impersonation,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.base_url, json=request.to_wire(), headers=self._headers(token))
        except httpx.HTTPError as exc:
            logger.warning("[roles] resolve-role transport error", extra={"error": str(exc)})
            raise RemoteError(f"Failed to resolve role: {exc}")

        payload = _json_or_none(response)
        server_message = _server_message(payload)

        if response.status_code >= 400:
            logger.warning(
                "[roles] resolve-role failed",
                extra={"status": response.status_code, "organization_id": organization_id},
            )
            raise RemoteError(
                server_message or f"Role resolution failed with status {response.status_code}",
                upstream_status=response.status_code,
            )

        if not isinstance(payload, dict):
            raise RemoteError("Role resolution returned an invalid response", upstream_status=response.status_code)
        if server_message or payload.get("success") is False:
            raise RemoteError(server_message or "Role resolution failed", upstream_status=response.status_code)

        try:
            resolved = ResolvedRole.model_validate(payload)
        except PydanticValidationError:
            raise RemoteError("Role resolution returned an invalid response", upstream_status=response.status_code)

        logger.debug(
            "[roles] resolved",
            extra={
                "user_id": resolved.user_id,
                "organization_id": resolved.organization_id,
                "effective_role": role_name(resolved.effective_role),
                "is_impersonating": resolved.is_impersonating,
            },
        )
        return resolved

    async def verify_owner_role(self, organization_id: str) -> bool:
        """True iff the service says the caller is effectively owner. Fails closed."""
        try:
            resolved = await self.resolve_role(organization_id=organization_id)
        except AppError as exc:
            logger.warning(
                "[roles] owner verification failed, denying",
                extra={"organization_id": organization_id, "error_code": exc.code},
            )
            return False
        return role_name(resolved.effective_role) == OrgRole.OWNER.value


def _json_or_none(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


def _server_message(payload) -> Optional[str]:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message") or None
        if error:
            return str(error)
    return None


def is_stale(resolved: ResolvedRole, active_organization_id: Optional[str]) -> bool:
    """A response for an organization the caller has since switched away from."""
    return resolved.organization_id != active_organization_id


def discard_if_stale(resolved: ResolvedRole, active_organization_id: Optional[str]) -> Optional[ResolvedRole]:
    if is_stale(resolved, active_organization_id):
        logger.info(
            "[roles] discarding stale resolution",
            extra={"resolved_org": resolved.organization_id, "active_org": active_organization_id},
        )
        return None
    return resolved


def build_client(session_provider: SessionProvider) -> RoleResolutionClient:
    """Client configured from settings."""
    if not settings.ROLE_RESOLUTION_URL:
        raise RemoteError("Role resolution service is not configured", status_code=503)
    return RoleResolutionClient(
        settings.ROLE_RESOLUTION_URL,
        session_provider,
        api_key=settings.ROLE_RESOLUTION_API_KEY,
    )
