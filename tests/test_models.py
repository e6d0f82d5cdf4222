"""Tests for the credential value objects."""

import base64
import json

import pytest

from regauth.registry.models import AuthBlock, ResolvedAuthSet, ResolvedCredential


def _decode_header(value):
    return json.loads(base64.urlsafe_b64decode(value.encode("ascii")))


@pytest.fixture
def auth_set():
    return ResolvedAuthSet(
        {
            "reg.io": ResolvedCredential(
                server_address="reg.io",
                username="user",
                password="pass",
                email="me@example.com",
                auth="dXNlcjpwYXNz",
            ),
            "anon.io": ResolvedCredential(server_address="anon.io"),
        }
    )


class TestResolvedCredential:
    """Test ResolvedCredential."""

    def test_to_dict_uses_engine_keys(self, auth_set):
        assert auth_set["reg.io"].to_dict() == {
            "username": "user",
            "password": "pass",
            "auth": "dXNlcjpwYXNz",
            "email": "me@example.com",
            "serveraddress": "reg.io",
        }

    def test_to_dict_omits_empty_values(self, auth_set):
        assert auth_set["anon.io"].to_dict() == {"serveraddress": "anon.io"}

    def test_repr_hides_secrets(self, auth_set):
        text = repr(auth_set["reg.io"])
        assert "password" not in text
        assert "dXNlcjpwYXNz" not in text

    def test_block_repr_hides_password(self):
        assert "hunter2" not in repr(AuthBlock(address="reg.io", username="u", password="hunter2"))


class TestResolvedAuthSet:
    """Test ResolvedAuthSet."""

    def test_is_read_only(self, auth_set):
        with pytest.raises(TypeError):
            auth_set["new.io"] = ResolvedCredential(server_address="new.io")

    def test_source_mapping_is_copied(self):
        source = {"reg.io": ResolvedCredential(server_address="reg.io")}
        auth_set = ResolvedAuthSet(source)
        source.clear()
        assert "reg.io" in auth_set

    def test_get_for_normalizes(self, auth_set):
        assert auth_set.get_for("reg.io/").username == "user"
        assert auth_set.get_for("missing.io") is None

    def test_registry_config_header(self, auth_set):
        decoded = _decode_header(auth_set.registry_config_header())
        assert decoded == {
            "anon.io": {"serveraddress": "anon.io"},
            "reg.io": {
                "auth": "dXNlcjpwYXNz",
                "email": "me@example.com",
                "password": "pass",
                "serveraddress": "reg.io",
                "username": "user",
            },
        }

    def test_registry_auth_header(self, auth_set):
        decoded = _decode_header(auth_set.registry_auth_header("reg.io/"))
        assert decoded["username"] == "user"
        assert decoded["serveraddress"] == "reg.io"

    def test_registry_auth_header_unknown(self, auth_set):
        with pytest.raises(KeyError):
            auth_set.registry_auth_header("missing.io")
