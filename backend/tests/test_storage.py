from urllib.parse import parse_qs, urlparse

import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from quote_pipeline.core.config import Settings
from quote_pipeline.utils.storage import ObjectStorage, StorageConfig, _client

CFG = StorageConfig(
    access_key_id="AKIDEXAMPLE",
    secret_access_key="secret",
    endpoint_url="https://acct.r2.cloudflarestorage.com",
)


def test_config_from_settings_builds_account_endpoint():
    cfg = StorageConfig.from_settings(
        Settings(R2_ACCOUNT_ID="acct", R2_ACCESS_KEY_ID="id", R2_SECRET_ACCESS_KEY="key")
    )
    assert cfg.endpoint_url == "https://acct.r2.cloudflarestorage.com"
    assert cfg.is_configured()


def test_explicit_endpoint_wins():
    settings = Settings(R2_ACCOUNT_ID="acct", R2_S3_ENDPOINT=" https://acct.eu.r2.cloudflarestorage.com ")
    assert StorageConfig.from_settings(settings).endpoint_url == "https://acct.eu.r2.cloudflarestorage.com"


def test_unconfigured_storage_fails_on_use():
    storage = ObjectStorage(StorageConfig(None, None, None))
    with pytest.raises(RuntimeError, match="not configured"):
        storage.put_object("bucket", "key", b"data")


def test_put_object_sends_content_type():
    client = _client(CFG)
    storage = ObjectStorage(CFG, client=client)
    with Stubber(client) as stub:
        stub.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {
                "Bucket": "quote-documents",
                "Key": "quotes/q-1/quote-Q-1-1.pdf",
                "Body": b"%PDF",
                "ContentType": "application/pdf",
            },
        )
        storage.put_object("quote-documents", "quotes/q-1/quote-Q-1-1.pdf", b"%PDF", content_type="application/pdf")
        stub.assert_no_pending_responses()


def test_put_object_error_propagates():
    client = _client(CFG)
    storage = ObjectStorage(CFG, client=client)
    with Stubber(client) as stub:
        stub.add_client_error("put_object", service_error_code="NoSuchBucket", http_status_code=404)
        with pytest.raises(ClientError) as excinfo:
            storage.put_object("missing", "key", b"%PDF")
        assert excinfo.value.response["Error"]["Code"] == "NoSuchBucket"


def test_presigned_url_is_path_style_and_expires():
    storage = ObjectStorage(CFG)
    url = storage.presign_get("quote-documents", "quotes/q-1/quote-Q-1-1.pdf", 86400)
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "acct.r2.cloudflarestorage.com"
    assert parsed.path == "/quote-documents/quotes/q-1/quote-Q-1-1.pdf"
    assert query["X-Amz-Expires"] == ["86400"]
    assert query["X-Amz-Algorithm"] == ["AWS4-HMAC-SHA256"]
    assert "X-Amz-Signature" in query
    assert "/auto/s3/" in query["X-Amz-Credential"][0]
