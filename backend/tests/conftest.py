import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy import event

from themestudio import create_app
from themestudio.extensions import db as _db
from themestudio.models import Store, User


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


def _user(email, password="s3cret-pass"):
    user = User(email=email)
    user.set_password(password)
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def owner(app):
    return _user("owner@example.com")


@pytest.fixture
def stranger(app):
    return _user("stranger@example.com")


def _store(owner, subdomain, theme="base"):
    store = Store(name=subdomain.title(), subdomain=subdomain, owner_id=owner.id, active_theme=theme)
    _db.session.add(store)
    _db.session.commit()
    return store


@pytest.fixture
def store(owner):
    return _store(owner, "acme")


@pytest.fixture
def other_store(stranger):
    return _store(stranger, "rival")


@pytest.fixture
def owner_headers(owner):
    return {"Authorization": f"Bearer {create_access_token(identity=owner.id)}"}


@pytest.fixture
def stranger_headers(stranger):
    return {"Authorization": f"Bearer {create_access_token(identity=stranger.id)}"}


@pytest.fixture
def sql_writes(app):
    """Collects every INSERT/UPDATE/DELETE sent to the database."""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().split(" ", 1)[0].upper() in ("INSERT", "UPDATE", "DELETE"):
            statements.append(statement)

    engine = _db.engine
    event.listen(engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine, "before_cursor_execute", record)
