import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from phishlens.core.detection_rules import get_detection_rules
from phishlens.core.phishing_detector import PhishingDetector
from phishlens.database import Base, get_db
from phishlens.main import app
from phishlens.models import User


@pytest.fixture(scope="session")
def detector():
    return PhishingDetector(get_detection_rules())


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would create the on-disk database
    yield TestClient(app)
    app.dependency_overrides.clear()


def register_and_verify(client, db_session, email="alice@example.com", name="Alice", password="s3cret-pass"):
    """Create a verified account and return its bearer headers"""
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201

    otp = db_session.query(User).filter(User.email == email).first().otp
    response = client.post("/api/auth/verify-otp", json={"email": email, "otp": otp})
    assert response.status_code == 200

    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client, db_session):
    return register_and_verify(client, db_session)
