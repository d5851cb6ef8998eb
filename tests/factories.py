"""
Test data helpers shared by the API tests.
"""

import io

PDF_BYTES = b"%PDF-1.4\n% test document\n"


def upload_part(name: str, content: bytes, mime_type: str = "text/plain"):
    """One entry of the ``files`` multipart field."""
    return ("files", (name, io.BytesIO(content), mime_type))


def register_payload(email: str = "a@x.com", password: str = "secret1", **overrides) -> dict:
    payload = {"email": email, "password": password, "firstName": "A", "lastName": "B"}
    payload.update(overrides)
    return payload


def issue_payload(**overrides) -> dict:
    payload = {"title": "Bug", "description": "desc", "priority": "high"}
    payload.update(overrides)
    return payload
