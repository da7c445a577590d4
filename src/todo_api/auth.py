from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from fastapi import Request

from .settings import get_settings


# PUBLIC_INTERFACE
def claims_from_event(event: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Return the verified claims API Gateway attached to a Lambda proxy event.

    Supports:
    - REST APIs with a Cognito authorizer: requestContext.authorizer.claims
    - HTTP APIs with a JWT authorizer: requestContext.authorizer.jwt.claims

    Returns an empty dict when the event carries no authorizer claims. The
    token itself is never looked at; the authorizer has already verified it.
    """
    if not isinstance(event, Mapping):
        return {}
    context = event.get("requestContext") or {}
    authorizer = context.get("authorizer") if isinstance(context, Mapping) else None
    if not isinstance(authorizer, Mapping):
        return {}

    claims = authorizer.get("claims")
    if isinstance(claims, Mapping):
        return dict(claims)

    jwt = authorizer.get("jwt")
    if isinstance(jwt, Mapping) and isinstance(jwt.get("claims"), Mapping):
        return dict(jwt["claims"])
    return {}


# PUBLIC_INTERFACE
def get_claims(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency returning the caller's verified claims.

    Behavior:
    - Behind API Gateway via Mangum, the original event is in the ASGI scope
      under 'aws.event' and its authorizer claims are used.
    - Otherwise, if TRUSTED_SUBJECT_HEADER is configured, the value of that
      header is taken as the 'sub' claim. Only enable this behind a proxy that
      authenticates callers and overwrites the header.
    - Otherwise there are no claims, and the handlers answer 401.
    """
    claims = claims_from_event(request.scope.get("aws.event"))
    if claims:
        return claims

    header = get_settings().trusted_subject_header
    if header:
        subject = request.headers.get(header)
        if subject and subject.strip():
            return {"sub": subject.strip()}
    return {}
