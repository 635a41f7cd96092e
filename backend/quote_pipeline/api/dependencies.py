from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..crud import crud_quote
from ..database import get_db
from ..services.artifact_publisher import ArtifactPublisher
from ..services.quote_pdf import QuoteDocumentRenderer
from ..utils.errors import Unauthorized
from ..utils.storage import ObjectStorage, StorageConfig

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    email: Optional[str] = None


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> CallerIdentity:
    """Validate the bearer token issued by the upstream identity provider."""
    if credentials is None or not credentials.credentials:
        logger.warning("Rejected request without bearer token")
        raise Unauthorized()
    audience = settings.AUTH_JWT_AUDIENCE or None
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise Unauthorized()
    subject = payload.get("sub")
    if not subject:
        logger.warning("Rejected bearer token without subject")
        raise Unauthorized()
    return CallerIdentity(user_id=str(subject), email=payload.get("email"))


def get_storage(settings: Settings = Depends(get_settings)) -> ObjectStorage:
    return ObjectStorage(StorageConfig.from_settings(settings))


def get_renderer(settings: Settings = Depends(get_settings)) -> QuoteDocumentRenderer:
    return QuoteDocumentRenderer(
        issuer_name=settings.ISSUER_NAME,
        issuer_tagline=settings.ISSUER_TAGLINE,
        currency_symbol=settings.CURRENCY_SYMBOL,
    )


def get_publisher(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> ArtifactPublisher:
    return ArtifactPublisher(
        storage=storage,
        append_attachment=lambda quote_id, attachment: crud_quote.append_attachment(db, quote_id, attachment),
        signed_url_ttl=settings.SIGNED_URL_TTL_SECONDS,
    )
