import base64

import pytest

from api.app.models import Sweet, User
from api.app.schemas import MAX_IMAGE_BYTES, normalize_image_url


def _data_url(size: int) -> str:
    return "data:image/png;base64," + base64.b64encode(b"\0" * size).decode()


@pytest.mark.parametrize("size", [MAX_IMAGE_BYTES - 1, MAX_IMAGE_BYTES])
def test_inline_image_up_to_limit_is_accepted(size):
    value = _data_url(size)
    assert normalize_image_url(value) == value


def test_inline_image_over_limit_is_rejected():
    with pytest.raises(ValueError, match="5MB"):
        normalize_image_url(_data_url(MAX_IMAGE_BYTES + 1))


def test_blank_image_becomes_none():
    assert normalize_image_url("   ") is None


@pytest.mark.parametrize(
    "column",
    [Sweet.__table__.c.created_at, Sweet.__table__.c.updated_at, User.__table__.c.created_at],
)
def test_timestamps_are_not_nullable(column):
    # Must match the columns created by the alembic revisions.
    assert column.nullable is False
