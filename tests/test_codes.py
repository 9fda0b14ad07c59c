"""Tests for code generation and digest comparison."""

import hashlib
import hmac

import pytest

from cqrs_ddd_verification import codes
from cqrs_ddd_verification.codes import CodeGenerator
from cqrs_ddd_verification.exceptions import EntropySourceError


def test_generate_returns_fixed_width_numeric_code():
    generated = CodeGenerator().generate()

    assert len(generated.code) == 6
    assert generated.code.isdigit()


def test_generate_zero_pads_small_values(monkeypatch):
    monkeypatch.setattr(codes.secrets, "randbelow", lambda n: 7)

    assert CodeGenerator().generate().code == "000007"


def test_generate_draws_from_full_range(monkeypatch):
    seen = []

    def fake_randbelow(n):
        seen.append(n)
        return n - 1

    monkeypatch.setattr(codes.secrets, "randbelow", fake_randbelow)

    assert CodeGenerator(code_length=6).generate().code == "999999"
    assert seen == [1_000_000]


def test_digest_is_sha256_without_secret():
    generated = CodeGenerator().generate()

    assert generated.digest == hashlib.sha256(generated.code.encode()).hexdigest()


def test_digest_is_hmac_with_secret():
    generator = CodeGenerator(secret=b"k3y")
    generated = generator.generate()

    expected = hmac.new(b"k3y", generated.code.encode(), hashlib.sha256).hexdigest()
    assert generated.digest == expected
    assert generated.digest != hashlib.sha256(generated.code.encode()).hexdigest()


def test_matches_accepts_correct_code_and_surrounding_whitespace():
    generator = CodeGenerator()
    generated = generator.generate()

    assert generator.matches(generated.code, generated.digest)
    assert generator.matches(f"  {generated.code}\n", generated.digest)


def test_matches_rejects_wrong_code():
    generator = CodeGenerator()
    digest = generator.digest("123456")

    assert not generator.matches("123457", digest)
    assert not generator.matches("", digest)


def test_entropy_failure_raises(monkeypatch):
    def broken(n):
        raise OSError("no entropy")

    monkeypatch.setattr(codes.secrets, "randbelow", broken)

    with pytest.raises(EntropySourceError):
        CodeGenerator().generate()


def test_repr_hides_code(monkeypatch):
    monkeypatch.setattr(codes.secrets, "randbelow", lambda n: 424242)
    generated = CodeGenerator().generate()

    assert "424242" not in repr(generated)


def test_code_length_must_be_positive():
    with pytest.raises(ValueError):
        CodeGenerator(code_length=0)


def test_custom_code_length():
    assert len(CodeGenerator(code_length=8).generate().code) == 8
