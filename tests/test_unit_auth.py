import pytest
from werkzeug.security import generate_password_hash

from car_rental.exceptions import AuthenticationError, ConflictError, ValidationError
from car_rental.services.auth_service import password_matches


def test_hash_roundtrip():
    h = generate_password_hash("Admin123")
    assert h != "Admin123"
    assert password_matches("Admin123", h)
    assert not password_matches("admin123", h)
    assert not password_matches("Admin123", None)
    assert not password_matches("Admin123", "plaintext-legacy")


def test_login(auth):
    admin = auth.create_admin("Boss@Rental.local", "Secret123", name="Boss")
    assert "password_hash" not in admin

    logged = auth.login("boss@rental.local", "Secret123")
    assert logged["id"] == admin["id"]
    with pytest.raises(AuthenticationError):
        auth.login("boss@rental.local", "wrong")
    with pytest.raises(AuthenticationError):
        auth.login("nobody@rental.local", "Secret123")
    with pytest.raises(AuthenticationError):
        auth.login("", "")


def test_create_admin_rules(auth):
    with pytest.raises(ValidationError):
        auth.create_admin("weak@rental.local", "short")
    auth.create_admin("one@rental.local", "Secret123")
    with pytest.raises(ConflictError):
        auth.create_admin("ONE@rental.local", "Secret123")


def test_default_admin_only_when_empty(store, auth):
    auth.ensure_default_admin("admin@rental.local", "Admin123")
    auth.ensure_default_admin("other@rental.local", "Admin123")
    assert len(store.admins) == 1
    assert store.find_admin("admin@rental.local")["name"] == "Administrator"
