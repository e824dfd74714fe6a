import os
import tempfile

_tmpdir = tempfile.mkdtemp(prefix="quizbank_test_")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from quizbank.core.database import Base, SessionLocal, engine, init_db  # noqa: E402
from quizbank.models.quiz_db.quiz_crud import import_parsed_quiz  # noqa: E402
from quizbank.services.daypo_import import ParsedItem, ParsedQuiz  # noqa: E402

SAMPLE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<test>
  <p><t>Redes CCNA</t></p>
  <c>
    <c0>
      <p>1. What does OSI stand for?</p>
      <r><o1>Open Systems Interconnection</o1><o2>Open Source Internet</o2><o3>Optical Signal Interface</o3></r>
      <c>211</c>
    </c0>
    <c1>
      <p>2) Which layer routes packets?</p>
      <r><o1>Physical</o1><o2>Network</o2></r>
      <c>12</c>
    </c1>
    <c2>
      <p>3 - Only one option</p>
      <r><o1>Alone</o1></r>
      <c>2</c>
    </c2>
    <c3>
      <p>Unnumbered question</p>
      <r><o1>A</o1><o2> </o2><o3>B</o3></r>
      <c>12</c>
    </c3>
  </c>
</test>
"""


@pytest.fixture
def sample_xml():
    return SAMPLE_XML


@pytest.fixture
def db():
    """
    Fresh tables for every test, dropped again afterwards.
    """
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api_client(db):
    from main import app
    with TestClient(app) as client:
        yield client


@pytest.fixture
def create_user(api_client):

    def _create_user(email="admin@example.com", password="examplePasswort1", role=None):
        payload = {"email": email, "password": password}
        if role:
            payload["role"] = role
        resp = api_client.post("/auth/register", json=payload)
        assert resp.status_code == 200, resp.text
        return resp.json(), password
    return _create_user


@pytest.fixture
def login(api_client, create_user):

    def _login(role=None, email=None):
        email = email or f"{role or 'admin'}@example.com"
        user, password = create_user(email=email, role=role)
        resp = api_client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}
    return _login


@pytest.fixture
def admin_headers(login):
    return login()


@pytest.fixture
def make_quiz(db):
    def _make_quiz(num_questions=3, title="Sample Quiz", correct=1):
        items = [
            ParsedItem(
                orig_no=i + 1,
                prompt=f"Q{i + 1}",
                options=["A", "B", "C", "D"],
                correct=[correct],
            )
            for i in range(num_questions)
        ]
        return import_parsed_quiz(db, ParsedQuiz(title=title, items=items))
    return _make_quiz
