import base64
import json
from io import BytesIO

import pytest
import responses
from PIL import Image

from client import (
    ApiError,
    EditForm,
    ImageControl,
    ImageProcessingError,
    ImageTooLarge,
    SweetsClient,
    UploadedImage,
    ValidationError,
    api_url,
    build_update_payload,
    resolve_api_base_url,
    resolve_image_url,
)

BASE = "http://shop.test"
PREVIOUS = {
    "id": 7,
    "name": "Gulab Jamun",
    "category": "Traditional",
    "price": 2.5,
    "quantity": 20,
    "image_url": "https://img.example/gulab.png",
}


def _png() -> bytes:
    out = BytesIO()
    Image.new("RGB", (4, 4), "orange").save(out, format="PNG")
    return out.getvalue()


def _form(**overrides) -> EditForm:
    fields = {
        "name": "Gulab Jamun",
        "category": "Traditional",
        "price": "2.75",
        "quantity": "18",
        "image": ImageControl(),
        **overrides,
    }
    return EditForm(**fields)


def test_base_url_resolution(monkeypatch):
    monkeypatch.delenv("SWEETSHOP_PUBLIC_API_URL", raising=False)
    monkeypatch.delenv("SWEETSHOP_API_URL", raising=False)
    assert resolve_api_base_url() == ""
    assert api_url("/api/sweets") == "/api/sweets"

    monkeypatch.setenv("SWEETSHOP_API_URL", "http://internal:3001/")
    assert resolve_api_base_url() == "http://internal:3001"

    monkeypatch.setenv("SWEETSHOP_PUBLIC_API_URL", "https://public.example")
    assert api_url("api/sweets") == "https://public.example/api/sweets"


def test_unchanged_image_is_kept():
    assert resolve_image_url(PREVIOUS["image_url"], ImageControl()) == PREVIOUS["image_url"]
    assert resolve_image_url(None, ImageControl(cleared=True)) is None


def test_url_field_wins_over_previous_and_clear():
    control = ImageControl(url="  https://img.example/new.png ", cleared=True)
    assert resolve_image_url(PREVIOUS["image_url"], control) == "https://img.example/new.png"


def test_cleared_control_removes_existing_image():
    assert resolve_image_url(PREVIOUS["image_url"], ImageControl(cleared=True)) is None


def test_selected_file_is_encoded():
    content = _png()
    control = ImageControl(
        file=UploadedImage("gulab.png", content, "image/png"),
        url="https://ignored.example/x.png",
    )
    value = resolve_image_url(PREVIOUS["image_url"], control)
    prefix = "data:image/png;base64,"
    assert value.startswith(prefix)
    assert base64.b64decode(value[len(prefix):]) == content


def test_oversized_file_is_rejected_before_decoding():
    upload = UploadedImage("big.png", b"\0" * (5 * 1024 * 1024 + 1), "image/png")
    with pytest.raises(ImageTooLarge):
        resolve_image_url(None, ImageControl(file=upload))


def test_unreadable_file_is_rejected():
    upload = UploadedImage("notes.png", b"definitely not an image", "image/png")
    with pytest.raises(ImageProcessingError):
        resolve_image_url(None, ImageControl(file=upload))


def test_payload_contains_every_field():
    payload = build_update_payload(PREVIOUS, _form())
    assert payload == {
        "name": "Gulab Jamun",
        "category": "Traditional",
        "price": 2.75,
        "quantity": 18,
        "image_url": "https://img.example/gulab.png",
    }


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"name": "  "}, "name"),
        ({"category": ""}, "category"),
        ({"price": "0"}, "price"),
        ({"price": "abc"}, "price"),
        ({"quantity": "-1"}, "quantity"),
        ({"quantity": "1.5"}, "quantity"),
    ],
)
def test_invalid_form_is_rejected(overrides, field):
    with pytest.raises(ValidationError) as excinfo:
        build_update_payload(PREVIOUS, _form(**overrides))
    assert excinfo.value.field == field


def test_edit_resubmits_unchanged_image_url():
    api = SweetsClient(base_url=BASE)
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            f"{BASE}/api/auth/login",
            json={"ok": True, "data": {"access_token": "tok", "token_type": "bearer", "expires_in": 60}},
        )
        rsps.add(
            responses.PUT,
            f"{BASE}/api/sweets/7",
            json={"ok": True, "data": {**PREVIOUS, "price": 2.75, "quantity": 18}},
        )
        api.login("admin", "secret123")
        updated = api.edit_sweet(PREVIOUS, _form())

        put = rsps.calls[1].request
        assert put.headers["Authorization"] == "Bearer tok"
        assert json.loads(put.body)["image_url"] == PREVIOUS["image_url"]
    assert updated["quantity"] == 18


def test_invalid_edit_sends_no_request():
    api = SweetsClient(base_url=BASE)
    with responses.RequestsMock() as rsps:
        with pytest.raises(ValidationError):
            api.edit_sweet(PREVIOUS, _form(price="-3"))
        assert len(rsps.calls) == 0


def test_error_envelope_becomes_api_error():
    api = SweetsClient(base_url=BASE)
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            f"{BASE}/api/sweets/7/purchase",
            status=409,
            json={
                "ok": False,
                "request_id": "r1",
                "error": {
                    "code": "INSUFFICIENT_STOCK",
                    "message": "Only 1 left in stock",
                    "details": {"available": 1, "requested": 3},
                },
            },
        )
        with pytest.raises(ApiError) as excinfo:
            api.purchase(7, 3)
    assert excinfo.value.status_code == 409
    assert excinfo.value.code == "INSUFFICIENT_STOCK"
    assert excinfo.value.details == {"available": 1, "requested": 3}


def test_search_uses_camel_case_bounds():
    api = SweetsClient(base_url=BASE)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{BASE}/api/sweets/search", json={"ok": True, "data": []})
        assert api.search_sweets(name="jamun", min_price=1) == []
        url = rsps.calls[0].request.url
    assert "minPrice=1" in url
    assert "maxPrice" not in url
