import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Session, select

from app.core import settings
from app.core.security import hash_password
from app.db.models import Agency, User, UserRole
from app.db.session import engine

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Crea tutte le tabelle e applica i dati iniziali."""
    SQLModel.metadata.create_all(engine)
    _healthcheck()
    _ensure_seed_agency_and_admin()


def _healthcheck() -> None:
    """Verifica la raggiungibilità del DB."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:  # pragma: no cover - best effort
        logger.error("Database healthcheck failed: %s", exc)


def _ensure_seed_agency_and_admin() -> None:
    """Crea l'agenzia HQ e il suo amministratore per ambienti demo/sviluppo."""
    try:
        with Session(engine) as session:
            agency = session.get(Agency, settings.super_agency_id)
            if not agency:
                agency = Agency(
                    id=settings.super_agency_id,
                    name=settings.seed_agency_name,
                    vat_number=settings.seed_agency_vat_number,
                )
                session.add(agency)
                session.commit()
                logger.info("Created seed agency '%s'", agency.id)

            username = settings.seed_admin_username
            password = settings.seed_admin_password
            if not username or not password:
                return
            existing = session.exec(select(User).where(User.username == username)).first()
            if existing:
                return

            admin = User(
                username=username,
                hashed_password=hash_password(password),
                full_name=settings.seed_admin_full_name,
                agency_id=agency.id,
                role=UserRole.admin,
                is_active=True,
            )
            session.add(admin)
            session.commit()
            logger.info("Created seed admin user '%s'", username)
    except SQLAlchemyError as exc:  # pragma: no cover - best effort
        logger.warning("Unable to seed default agency/admin: %s", exc)
