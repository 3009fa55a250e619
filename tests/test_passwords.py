import asyncio

from bkm.auth.passwords import compare_password, generate_salt, hash_password


def test_hash_is_deterministic_for_same_password_and_salt():
    salt = "somesalt"
    h1 = asyncio.run(hash_password("Secret123!", salt))
    h2 = asyncio.run(hash_password("Secret123!", salt))
    assert h1 == h2
    assert len(h1) == 128
    int(h1, 16)


def test_hash_depends_on_salt():
    h1 = asyncio.run(hash_password("Secret123!", generate_salt()))
    h2 = asyncio.run(hash_password("Secret123!", generate_salt()))
    assert h1 != h2


def test_compare_password_true_false():
    salt = generate_salt()
    h = asyncio.run(hash_password("Secret123!", salt))
    assert asyncio.run(compare_password("Secret123!", salt, h)) is True
    assert asyncio.run(compare_password("nope", salt, h)) is False


def test_generate_salt_is_unique_hex():
    s1 = generate_salt()
    s2 = generate_salt()
    assert s1 != s2
    assert len(s1) == 32
    int(s1, 16)


def test_unicode_forms_hash_identically():
    salt = generate_salt()
    composed = "Caf\u00e9-Pass1"
    decomposed = "Cafe\u0301-Pass1"
    h = asyncio.run(hash_password(composed, salt))
    assert asyncio.run(hash_password(decomposed, salt)) == h
    assert asyncio.run(compare_password(decomposed, salt, h)) is True


def test_compare_rejects_malformed_stored_hash():
    salt = generate_salt()
    h = asyncio.run(hash_password("Secret123!", salt))
    assert asyncio.run(compare_password("Secret123!", salt, h[:-2])) is False
    assert asyncio.run(compare_password("Secret123!", salt, "not-hex")) is False
    assert asyncio.run(compare_password("Secret123!", salt, "")) is False
