import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from jose import jwt

SECRET_KEY = "ci-test-secret-key-long-enough-for-hs512-signing"
ALGORITHM = "HS512"

SERVICE_DIR = Path(__file__).resolve().parents[1]
ROOT_DIR = SERVICE_DIR.parent.parent

service_path = str(SERVICE_DIR)
shared_path = str(ROOT_DIR / "services")
for path in (service_path, shared_path):
    if path in sys.path:
        sys.path.remove(path)
    sys.path.insert(0, path)

for module_name in list(sys.modules):
    if module_name == "app" or module_name.startswith("app."):
        sys.modules.pop(module_name)

# Garante que o app e os testes usem o mesmo segredo/algoritmo
os.environ["SECRET_KEY"] = SECRET_KEY
os.environ["JWT_ALGORITHM"] = ALGORITHM
os.environ["PORTAL_DATABASE_URL"] = f"sqlite:///{SERVICE_DIR / 'test_portal.db'}"
os.environ["REDIS_URL"] = ""  # sem publisher nem consumer nos testes

from app.main import app  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.models.account import Account  # noqa: E402
from app.models.appointment import Appointment  # noqa: E402
from app.models.enums import AppointmentStatus, LessonType, PlanTier, Role, SubscriptionStatus  # noqa: E402
from app.models.formation import Enrollment, Formation, Lesson, Section  # noqa: E402
from app.models.tenant import Subscription, Tenant  # noqa: E402
from app.policy import Actor  # noqa: E402

engine = app.state.engine


@pytest.fixture(autouse=True)
def prepare_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session_factory():
    return app.state.session_factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def accounts_settings():
    return app.state.config.accounts


def _encode(account_id, role, tenant_id) -> dict:
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    payload = {
        "sub": str(account_id),
        "role": role,
        "tenant_id": str(tenant_id) if tenant_id else None,
        "exp": int(exp.timestamp()),
    }
    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Gera headers Bearer para uma conta já persistida."""

    def make(account: Account) -> dict:
        return _encode(account.id, account.role, account.tenant_id)

    return make


class Seeder:
    """Cria linhas diretamente no banco para montar cenários."""

    def __init__(self, session):
        self.db = session
        self._counter = 0

    def _email(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}@example.com"

    def tenant(
        self,
        name: str = "Acme",
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        plan: PlanTier = PlanTier.PRO,
        external_id=None,
    ) -> Tenant:
        tenant = Tenant(name=name)
        self.db.add(tenant)
        self.db.flush()
        self.db.add(
            Subscription(
                tenant_id=tenant.id,
                plan=plan.value,
                status=status.value,
                external_id=external_id,
            )
        )
        self.db.commit()
        return tenant

    def account(self, role: Role, tenant: Tenant = None, *, email: str = None, password: str = None) -> Account:
        account = Account(
            email=email or self._email(role.value.lower()),
            name=role.value.title(),
            role=role.value,
            tenant_id=tenant.id if tenant is not None else None,
            password_hash=get_password_hash(password) if password else None,
        )
        self.db.add(account)
        self.db.commit()
        return account

    def formation(self, author: Account, *, active: bool = True, title: str = "Gestão do stress") -> Formation:
        formation = Formation(author_id=author.id, title=title, is_active=active)
        self.db.add(formation)
        self.db.commit()
        return formation

    def lesson(
        self,
        formation: Formation,
        *,
        published: bool = True,
        lesson_type: LessonType = LessonType.TEXT,
        duration_seconds: int = None,
    ) -> Lesson:
        """Cria a lição na primeira seção da formação (criando a seção se preciso)."""
        section = self.db.query(Section).filter(Section.formation_id == formation.id).first()
        if section is None:
            section = Section(formation_id=formation.id, title="Módulo 1", position=0)
            self.db.add(section)
            self.db.flush()
        position = self.db.query(Lesson).filter(Lesson.section_id == section.id).count()
        lesson = Lesson(
            section_id=section.id,
            title=f"Lição {position + 1}",
            lesson_type=lesson_type.value,
            position=position,
            is_published=published,
            duration_seconds=duration_seconds,
        )
        self.db.add(lesson)
        self.db.commit()
        return lesson

    def enrollment(self, account: Account, formation: Formation, progress: int = 0) -> Enrollment:
        enrollment = Enrollment(account_id=account.id, formation_id=formation.id, progress=progress)
        self.db.add(enrollment)
        self.db.commit()
        return enrollment

    def appointment(
        self,
        employee: Account,
        *,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        consultant: Account = None,
    ) -> Appointment:
        appointment = Appointment(
            tenant_id=employee.tenant_id,
            employee_id=employee.id,
            consultant_id=consultant.id if consultant is not None else None,
            title="Acompanhamento",
            scheduled_at=datetime.now(timezone.utc) + timedelta(days=3),
            status=status.value,
        )
        self.db.add(appointment)
        self.db.commit()
        return appointment


@pytest.fixture
def seed(db):
    return Seeder(db)


def actor_for(account: Account) -> Actor:
    return Actor(account_id=account.id, role=Role(account.role), tenant_id=account.tenant_id)


@pytest.fixture
def as_actor():
    return actor_for
