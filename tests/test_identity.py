import uuid

from checkout_service.identity import resolve_owner_key


def test_authenticated_name_wins():
    identity = resolve_owner_key("demouser@microsoft.com", {"eShop": "token"}, "eShop")

    assert identity.owner_key == "demouser@microsoft.com"
    assert identity.authenticated
    assert not identity.issued_token


def test_existing_cookie_is_reused():
    identity = resolve_owner_key(None, {"eShop": "abc-123"}, "eShop")

    assert identity.owner_key == "abc-123"
    assert not identity.issued_token


def test_new_token_is_issued_without_cookie():
    identity = resolve_owner_key(None, {}, "eShop")

    assert identity.issued_token
    assert str(uuid.UUID(identity.owner_key)) == identity.owner_key


def test_same_token_resolves_to_same_owner():
    first = resolve_owner_key(None, {}, "eShop")
    second = resolve_owner_key(None, {"eShop": first.owner_key}, "eShop")

    assert second.owner_key == first.owner_key
