from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from app import create_app
from config import Config
from models import db

PASSWORD = "s3cret"


class FakeClock:
    """Unix-seconds clock that only moves when told to."""

    def __init__(self, start=1_700_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds=1):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def app(upload_dir, clock):
    """Provides an app bound to an in-memory SQLite database for each test function."""
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        SQLALCHEMY_DATABASE_URI = "sqlite://"
        UPLOAD_FOLDER = str(upload_dir)
        ADMIN_PASSWORD = PASSWORD

    app = create_app(TestConfig, clock=clock)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def board(app):
    return app.extensions["board"]


@pytest.fixture
def articles(board):
    return board.articles


@pytest.fixture
def comments(board):
    return board.comments


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_upload():
    """Factory for Werkzeug uploads as Flask hands them to the workflows."""
    def _factory(filename="cat.png", data=b"\x89PNG fake image"):
        return FileStorage(stream=BytesIO(data), filename=filename)
    return _factory
