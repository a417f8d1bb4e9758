"""
Pytest configuration and fixtures
"""
from unittest.mock import Mock
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from helpdesk.database import Base, get_db
from helpdesk.models import FAQ, Favorite, History  # noqa: F401
from helpdesk.services.faq_index import FAQIndex
from helpdesk.services.generation import GenerationClient
from helpdesk.services.knowledge_base import load_entries
from helpdesk.services.resolver import AnswerResolver


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="session")
def test_engine():
    """Create test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create test database session"""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()

    # Create tables for this test
    Base.metadata.create_all(bind=test_engine)

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def sample_faqs(test_db_session):
    """Create a small FAQ knowledge base"""
    faqs = [
        FAQ(question="How to configure VPN?", answer="Open settings and choose the VPN tab."),
        FAQ(question="Printer is not printing", answer="Check the paper tray and restart the printer."),
        FAQ(question="Reset my password", answer="Use the self-service portal to reset it."),
        FAQ(question="Email quota exceeded", answer="Archive old mail or request more storage."),
        FAQ(question="Wireless keeps disconnecting", answer="Forget the network and reconnect."),
    ]
    test_db_session.add_all(faqs)
    test_db_session.commit()
    for faq in faqs:
        test_db_session.refresh(faq)
    return faqs


@pytest.fixture
def vpn_faq(sample_faqs):
    return sample_faqs[0]


@pytest.fixture
def faq_index(tmp_path, test_db_session, sample_faqs):
    """Full-text index built from the sample FAQ"""
    index = FAQIndex.open_or_create(tmp_path / "faq_index.db", load_entries(test_db_session))
    yield index
    index.close()


@pytest.fixture
def fake_generator():
    """Generation client that never touches the network"""
    generator = Mock(spec=GenerationClient)
    generator.generate.return_value = "Generated answer from the model"
    return generator


@pytest.fixture
def fake_index():
    """Index stub; tests set search.return_value"""
    index = Mock(spec=FAQIndex)
    index.search.return_value = []
    return index


@pytest.fixture
def resolver(faq_index, fake_generator):
    return AnswerResolver(faq_index, fake_generator, threshold=0.3)


@pytest.fixture
def client(test_db_session, faq_index, resolver):
    """Test client wired to the test database, index and resolver"""
    from helpdesk.api.routes import get_index, get_resolver
    from helpdesk.main import app

    def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_index] = lambda: faq_index
    app.dependency_overrides[get_resolver] = lambda: resolver
    yield TestClient(app)
    app.dependency_overrides.clear()


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
