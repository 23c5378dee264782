from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import INET

from signup_service.db.base_class import Base

TICKET_TYPES = ("U18", "Ü18")


class Registration(Base):
    __tablename__ = "registrations"
    # PostgreSQL default constraint names, kept so existing databases migrate cleanly
    __table_args__ = (
        UniqueConstraint("email", name="registrations_email_key"),
        CheckConstraint(
            "ticket_type IN ('U18', 'Ü18')", name="registrations_ticket_type_check"
        ),
        CheckConstraint("guests >= 0 AND guests <= 10", name="registrations_guests_check"),
        CheckConstraint("LENGTH(clan_nickname) >= 2", name="registrations_clan_nickname_check"),
        CheckConstraint("LENGTH(email) >= 5", name="registrations_email_check"),
        Index("idx_registrations_email", "email"),
        Index("idx_registrations_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    clan_nickname = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    ticket_type = Column(String(3), nullable=False)

    shirt = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    pizza = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    drinks = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    guests = Column(SmallInteger, nullable=False, server_default=text("0"), default=0)
    consent = Column(Boolean, nullable=False, server_default=text("false"), default=False)

    # Payment status, set out of band by the organizer. The intake never writes it.
    bezahlt = Column(SmallInteger, nullable=False, server_default=text("0"))

    # Request provenance, captured on every write
    ip_address = Column(INET().with_variant(String(45), "sqlite"), nullable=True)
    user_agent = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Registration id={self.id} clan_nickname={self.clan_nickname!r}>"
