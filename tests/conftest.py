import mongomock
import pytest
from bson import ObjectId

from backend import create_app
from backend.store import Store
from backend.tokens import issue_token

SECRET = 'test-secret'
ADMIN_EMAIL = 'admin@dishdash.test'
USER_EMAIL = 'guest@dishdash.test'


class RecordingNotifier:
    """Collects receipts instead of mailing them"""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def dispatch(self, payment):
        if self.fail:
            raise RuntimeError('smtp down')
        self.sent.append(payment)

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def store():
    return Store(mongomock.MongoClient()['dishdash-test'])


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(store, notifier):
    app = create_app(
        {'TESTING': True, 'ACCESS_TOKEN_SECRET': SECRET, 'STRIPE_SECRET_KEY': 'sk_test_x'},
        store=store,
        notifier=notifier,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(store):
    store.users.insert_one({'email': ADMIN_EMAIL, 'name': 'Admin', 'role': 'admin'})
    return ADMIN_EMAIL


@pytest.fixture
def guest(store):
    store.users.insert_one({'email': USER_EMAIL, 'name': 'Guest'})
    return USER_EMAIL


def auth_header(email, secret=SECRET):
    return {'Authorization': f"Bearer {issue_token({'email': email}, secret)}"}


@pytest.fixture
def menu(store):
    """Two desserts and one main course"""
    ids = store.menu.insert_many([
        {'name': 'Cake', 'category': 'Dessert', 'price': 4},
        {'name': 'Steak', 'category': 'Main', 'price': 12},
        {'name': 'Soup', 'category': 'Soup', 'price': 6},
    ]).inserted_ids
    return {'cake': ids[0], 'steak': ids[1], 'soup': ids[2]}


def new_id():
    return str(ObjectId())
