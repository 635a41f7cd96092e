import re

from quote_pipeline.models import Quote

from conftest import add_quote, make_token

URL = "/generate-quote-pdf"
KEY_PATTERN = re.compile(r"quotes/q-1/quote-Q-1001-\d{13}\.pdf")


def stored_attachments(db, quote_id="q-1"):
    db.expire_all()
    return db.get(Quote, quote_id).attachments


def test_requires_bearer_token(client, db, storage):
    add_quote(db)
    res = client.post(URL, json={"quoteId": "q-1"})
    assert res.status_code == 401
    assert storage.objects == {}


def test_expired_token_rejected(client, db):
    add_quote(db)
    headers = {"Authorization": f"Bearer {make_token(exp=1)}"}
    res = client.post(URL, json={"quoteId": "q-1"}, headers=headers)
    assert res.status_code == 401


def test_missing_quote_id(client, auth_headers):
    for payload in ({}, {"quoteId": ""}, {"quoteId": "   "}):
        res = client.post(URL, json=payload, headers=auth_headers)
        assert res.status_code == 400
        assert res.json() == {"error": "quoteId is required"}


def test_empty_body(client, auth_headers):
    res = client.post(URL, headers=auth_headers)
    assert res.status_code == 400
    assert res.json() == {"error": "quoteId is required"}


def test_unknown_quote_is_not_found(client, storage, auth_headers):
    res = client.post(URL, json={"quoteId": "nope"}, headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Quote not found"}
    assert storage.objects == {}


def test_generates_uploads_and_attaches(client, db, storage, auth_headers):
    add_quote(db)
    res = client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True

    [(bucket, key)] = storage.objects
    body, content_type = storage.objects[(bucket, key)]
    assert bucket == "quote-documents"
    assert KEY_PATTERN.fullmatch(key)
    assert content_type == "application/pdf"
    assert body.startswith(b"%PDF")

    file = data["file"]
    assert file["name"] == key.rsplit("/", 1)[-1]
    assert file["type"] == "application/pdf"
    assert file["size"] == len(body)
    assert file["uploadedBy"] == "user-123"
    assert file["url"].startswith(f"https://storage.test/quote-documents/{key}")
    assert storage.presigned == [("quote-documents", key, 86400)]

    attachments = stored_attachments(db)
    assert len(attachments) == 1
    assert attachments[0]["id"] == file["id"]
    assert attachments[0]["uploadedBy"] == "user-123"


def test_snake_case_quote_id_accepted(client, db, auth_headers):
    add_quote(db)
    res = client.post(URL, json={"quote_id": "q-1"}, headers=auth_headers)
    assert res.status_code == 200


def test_existing_attachments_are_kept(client, db, auth_headers):
    earlier = {
        "id": "att-0",
        "name": "site-photo.jpg",
        "url": "https://storage.test/site-photo.jpg",
        "type": "image/jpeg",
        "size": 2048,
        "uploadedAt": "2026-01-01T00:00:00Z",
        "uploadedBy": "user-1",
    }
    add_quote(db, attachments=[earlier])
    client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    second = client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    assert second.status_code == 200
    attachments = stored_attachments(db)
    assert len(attachments) == 3
    assert attachments[0] == earlier
    assert attachments[1]["id"] != attachments[2]["id"]


def test_upload_failure_leaves_quote_untouched(client, db, storage, auth_headers):
    add_quote(db)
    storage.fail_upload = True
    res = client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    assert res.status_code == 500
    assert res.json()["error"].startswith("Failed to upload PDF")
    assert stored_attachments(db) == []


def test_signing_failure_still_attaches(client, db, storage, auth_headers):
    add_quote(db)
    storage.fail_presign = True
    res = client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    assert res.status_code == 200
    url = res.json()["file"]["url"]
    assert url.startswith("quote-documents/quotes/q-1/")
    assert len(stored_attachments(db)) == 1


def test_quote_without_totals_is_rejected(client, db, storage, auth_headers):
    add_quote(db, totals=None)
    res = client.post(URL, json={"quoteId": "q-1"}, headers=auth_headers)
    assert res.status_code == 500
    assert res.json() == {"error": "Quote q-1 data is invalid"}
    assert storage.objects == {}


def test_preflight_returns_ok(client):
    res = client.options(URL)
    assert res.status_code == 200
    assert res.text == "ok"
    assert res.headers["access-control-allow-methods"] == "POST, OPTIONS"
