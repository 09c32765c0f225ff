import base64

from tubely.ingest.keys import (
    STORAGE_KEY_PATTERN,
    build_storage_key,
    extension_for_media_type,
    random_object_token,
)
from tubely.media.aspect import AspectClass


def test_token_encodes_256_bits_url_safe():
    token = random_object_token()
    assert len(token) == 43
    assert "=" not in token
    assert "+" not in token and "/" not in token
    assert len(base64.urlsafe_b64decode(token + "=")) == 32


def test_tokens_do_not_repeat():
    tokens = {random_object_token() for _ in range(1000)}
    assert len(tokens) == 1000


def test_extension_for_media_type():
    assert extension_for_media_type("video/mp4") == "mp4"


def test_build_storage_key_shape():
    for classification in AspectClass:
        key = build_storage_key(classification, "video/mp4")
        assert STORAGE_KEY_PATTERN.match(key), key
        assert key.startswith(f"{classification.value}/")
        assert key.endswith(".mp4")


def test_two_keys_for_the_same_bucket_differ():
    first = build_storage_key(AspectClass.landscape, "video/mp4")
    second = build_storage_key(AspectClass.landscape, "video/mp4")
    assert first != second
