# signup_service/crud/crud_registration.py
import ipaddress
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from signup_service.core.errors import (
    InvalidRegistrationDataError,
    RegistrationConflictError,
    RegistrationStoreError,
)
from signup_service.models.registration import Registration
from signup_service.schemas.registration import RegistrationCreate, RequestProvenance
from signup_service.utils.validators import GUESTS_MAX, GUESTS_MIN

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
CHECK_VIOLATION = "23514"
PUBLIC_LISTING_LIMIT = 100


@dataclass(frozen=True)
class UpsertResult:
    id: int
    created: bool


def classify_integrity_error(error: IntegrityError) -> Optional[str]:
    """
    Map a constraint violation to its SQLSTATE.

    psycopg2 exposes ``pgcode``, psycopg 3 ``sqlstate``. SQLite has neither,
    so fall back to its message text.
    """
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in (UNIQUE_VIOLATION, CHECK_VIOLATION):
        return code

    message = str(orig).upper()
    if "UNIQUE" in message:
        return UNIQUE_VIOLATION
    if "CHECK" in message:
        return CHECK_VIOLATION
    return None


def _storable_ip(value: Optional[str]) -> Optional[str]:
    """INET rejects anything that is not an address, so drop it instead of failing the write."""
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


class CRUDRegistration:
    def __init__(self, model):
        self.model = model

    def get_by_email(self, db: Session, *, email: str, for_update: bool = False) -> Optional[Registration]:
        stmt = select(self.model).where(self.model.email == email)
        if for_update:
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalar_one_or_none()

    def upsert_by_email(
        self,
        db: Session,
        *,
        obj_in: RegistrationCreate,
        provenance: RequestProvenance,
    ) -> UpsertResult:
        """
        Insert a registration, or overwrite the one with the same email.

        Runs as one transaction. id, created_at and bezahlt of an existing
        row are never touched, and guests is clamped into range before
        writing. The unique constraint on email is what makes this safe under
        concurrent submissions: if another request inserts the same email
        between our lookup and our insert, the violation is reported as a
        conflict.

        Raises:
            RegistrationConflictError: Unique email violated by a concurrent insert.
            InvalidRegistrationDataError: A check constraint rejected the row.
            RegistrationStoreError: Any other database failure.
        """
        fields = obj_in.mutable_fields()
        fields["guests"] = max(GUESTS_MIN, min(GUESTS_MAX, fields["guests"]))
        fields["ip_address"] = _storable_ip(provenance.ip_address)
        fields["user_agent"] = provenance.user_agent

        try:
            existing = self.get_by_email(db, email=obj_in.email, for_update=True)
            if existing is not None:
                for name, value in fields.items():
                    setattr(existing, name, value)
                db_obj, created = existing, False
            else:
                db_obj = self.model(email=obj_in.email, **fields)
                db.add(db_obj)
                created = True

            db.flush()
            registration_id = db_obj.id
            db.commit()
        except IntegrityError as e:
            db.rollback()
            code = classify_integrity_error(e)
            if code == UNIQUE_VIOLATION:
                logger.warning(f"Concurrent registration for {obj_in.email} lost the race")
                raise RegistrationConflictError() from e
            if code == CHECK_VIOLATION:
                logger.warning(f"Check constraint rejected registration for {obj_in.email}: {e.orig}")
                raise InvalidRegistrationDataError() from e
            logger.error(f"Integrity error while saving registration: {e}", exc_info=True)
            raise RegistrationStoreError() from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error while saving registration: {e}", exc_info=True)
            raise RegistrationStoreError() from e

        return UpsertResult(id=registration_id, created=created)

    def get_public_listing(self, db: Session, *, limit: int = PUBLIC_LISTING_LIMIT) -> List[Registration]:
        """Consenting registrations only, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.consent.is_(True))
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(limit)
        )
        return list(db.execute(stmt).scalars().all())

    def count(self, db: Session) -> int:
        return db.query(self.model).count()


registration = CRUDRegistration(Registration)
