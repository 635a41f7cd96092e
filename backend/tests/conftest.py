from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from fastapi.testclient import TestClient
from jose import jwt
import pytest

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')

from quote_pipeline.api.dependencies import get_storage
from quote_pipeline.core.config import Settings
from quote_pipeline.main import create_app
from quote_pipeline.models import GlobalSetting, Quote

TEST_SECRET = "test-secret"


class FakeStorage:
    """In-memory stand-in for the S3 client wrapper."""

    def __init__(self):
        self.objects = {}
        self.presigned = []
        self.fail_upload = False
        self.fail_presign = False

    def put_object(self, bucket, key, body, content_type=None):
        if self.fail_upload:
            raise RuntimeError("bucket rejected the write")
        self.objects[(bucket, key)] = (body, content_type)

    def presign_get(self, bucket, key, expires_in):
        if self.fail_presign:
            raise RuntimeError("signing service unavailable")
        self.presigned.append((bucket, key, expires_in))
        return f"https://storage.test/{bucket}/{key}?X-Amz-Expires={expires_in}&X-Amz-Signature=abc"


@pytest.fixture
def settings():
    return Settings(
        SQLALCHEMY_DATABASE_URL="sqlite:///:memory:",
        AUTH_JWT_SECRET=TEST_SECRET,
        STORAGE_BUCKET="quote-documents",
        DEFAULT_GST_RATE=Decimal("10"),
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def app(settings, storage):
    application = create_app(settings)
    application.dependency_overrides[get_storage] = lambda: storage
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def make_token(sub="user-123", secret=TEST_SECRET, **claims):
    return jwt.encode({"sub": sub, **claims}, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token(email='sales@example.com')}"}


def line_item(id, quantity, unit_price, category="chargers", markup=0, **extra):
    item = {
        "id": id,
        "name": f"Item {id}",
        "description": "",
        "quantity": quantity,
        "unitPrice": unit_price,
        "cost": 0,
        "markupPercent": markup,
        "category": category,
    }
    item.update(extra)
    return item


def add_setting(db, key, value):
    db.add(GlobalSetting(key=key, value=value))
    db.commit()


def add_quote(db, quote_id="q-1", **overrides):
    fields = dict(
        id=quote_id,
        quote_number="Q-1001",
        title="Workplace charging",
        client_info={
            "company": "Acme Fleet",
            "contactPerson": "Jo Citizen",
            "email": "jo@acme.test",
            "phone": "02 9999 0000",
            "address": "1 Charge St\nSydney NSW 2000",
        },
        line_items=[
            {
                "id": "li-1",
                "name": "22kW wallbox",
                "description": "Dual socket, tethered",
                "quantity": 2,
                "unitPrice": 90,
                "markupPercent": 0,
                "category": "chargers",
                "totalPrice": 180,
            }
        ],
        totals={
            "subtotal": 180,
            "discount": 0,
            "discountType": "percentage",
            "gst": 18,
            "total": 198,
        },
        attachments=[],
    )
    fields.update(overrides)
    quote = Quote(**fields)
    db.add(quote)
    db.commit()
    return quote
