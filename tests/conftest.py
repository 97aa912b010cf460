"""
Shared fixtures: one in-memory SQLite database per test, the FastAPI app
wired to it, and a small seeding helper for tenants, profiles and academics.
"""
import os
from datetime import date

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret"

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport  # noqa: E402

import main  # noqa: E402
from services.academic.models.academic import AcademicYear, Batch, BatchStudent, Course, Subject  # noqa: E402
from services.user_management.models.profiles import Identity, Profile  # noqa: E402
from services.user_management.models.schools import School  # noqa: E402
from services.user_management.models.staff import StaffDetails  # noqa: E402
from services.user_management.models.students import StudentDetails  # noqa: E402
from shared.auth import create_profile_token, get_password_hash  # noqa: E402
from shared.db import Base, build_engine, build_session_factory, get_db  # noqa: E402

DEFAULT_PASSWORD = "secret123"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def session_factory(anyio_backend):
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    main.app.dependency_overrides[get_db] = override_get_db
    async with httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as c:
        yield c
    main.app.dependency_overrides.clear()


def auth_headers(profile) -> dict:
    return {"Authorization": f"Bearer {create_profile_token(profile)}"}


class Seeder:
    def __init__(self, session):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def headers(self, profile) -> dict:
        return auth_headers(profile)

    async def _save(self, *rows):
        self.session.add_all(rows)
        await self.session.commit()
        return rows[0] if len(rows) == 1 else rows

    async def school(self, name=None):
        n = self._next()
        return await self._save(School(id=f"school-{n}", name=name or f"School {n}", address=f"{n} Main Road"))

    async def profile(self, roles, school=None, email=None, password=DEFAULT_PASSWORD, with_login=True):
        n = self._next()
        email = email or f"user{n}@example.com"
        profile = Profile(
            email=email,
            first_name="User",
            last_name=str(n),
            roles=list(roles),
            school_id=school.id if school else None,
        )
        self.session.add(profile)
        await self.session.flush()
        if with_login:
            self.session.add(Identity(id=profile.id, email=email, hashed_password=get_password_hash(password)))
        await self.session.commit()
        return profile

    async def staff(self, school, email=None, profile=None):
        n = self._next()
        return await self._save(StaffDetails(
            school_id=school.id,
            first_name="Staff",
            last_name=str(n),
            email=email or f"staff{n}@example.com",
            employee_id=f"EMP-{n}",
            profile_id=profile.id if profile else None,
        ))

    async def student(self, school, email=None):
        n = self._next()
        return await self._save(StudentDetails(
            school_id=school.id,
            first_name="Student",
            last_name=str(n),
            email=email or f"student{n}@example.com",
            admission_number=f"ADM-{n:03d}",
        ))

    async def year(self, school, name=None, is_active=False, is_archived=False):
        n = self._next()
        return await self._save(AcademicYear(
            school_id=school.id,
            name=name or f"20{20 + n}-{21 + n}",
            start_date=date(2020 + n, 6, 1),
            end_date=date(2021 + n, 3, 31),
            is_active=is_active,
            is_archived=is_archived,
        ))

    async def course(self, year, name="Grade 1"):
        return await self._save(Course(school_id=year.school_id, academic_year_id=year.id, name=name))

    async def batch(self, course, name="A", class_teacher=None, capacity=None):
        return await self._save(Batch(
            school_id=course.school_id,
            academic_year_id=course.academic_year_id,
            course_id=course.id,
            name=name,
            capacity=capacity,
            class_teacher_id=class_teacher.id if class_teacher else None,
        ))

    async def subject(self, year, name="Mathematics", code=None):
        return await self._save(Subject(
            school_id=year.school_id, academic_year_id=year.id, name=name, code=code
        ))

    async def enrol(self, batch, *students):
        self.session.add_all(BatchStudent(batch_id=batch.id, student_id=s.id) for s in students)
        await self.session.commit()


@pytest.fixture
def seed(db):
    return Seeder(db)
