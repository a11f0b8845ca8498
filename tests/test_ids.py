import pytest

import paste_ids
from paste_errors import RandomnessFailure
from paste_ids import ALPHABET, MAX_ACCEPTED, generate_id


def test_alphabet_has_62_symbols():
    assert len(ALPHABET) == 62
    assert len(set(ALPHABET)) == 62
    assert MAX_ACCEPTED == 248


def test_generated_ids_have_expected_shape():
    for _ in range(200):
        paste_id = generate_id()
        assert len(paste_id) == 8
        assert all(c in ALPHABET for c in paste_id)


def test_custom_length():
    assert len(generate_id(20)) == 20
    assert len(generate_id(1)) == 1


def test_non_positive_length_rejected():
    with pytest.raises(ValueError):
        generate_id(0)


def test_biased_bytes_are_rejected(monkeypatch):
    batches = iter([
        bytes([248, 249, 250, 251, 252, 253, 254, 255, 248, 255]),
        bytes([0, 1, 2, 255, 3, 4, 62, 247, 5, 6]),
    ])
    monkeypatch.setattr(paste_ids, "_random_bytes", lambda count: next(batches))

    # 62 wraps to "A", 247 maps to the last symbol
    assert generate_id(8) == "ABCDEA9F"


def test_random_source_failure_raises(monkeypatch):
    def broken(count):
        raise OSError("no entropy")

    monkeypatch.setattr(paste_ids.secrets, "token_bytes", broken)
    with pytest.raises(RandomnessFailure):
        generate_id()
