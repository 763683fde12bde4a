from tutorledger.guest.service import CODE_ALPHABET, normalize_code, random_code


def test_normalize_trims_and_uppercases():
    assert normalize_code("  abc123 ") == "ABC123"
    assert normalize_code("   ") == ""
    assert normalize_code(None) == ""


def test_random_code_uses_unambiguous_alphabet():
    code = random_code()
    assert len(code) == 6
    assert set(code) <= set(CODE_ALPHABET)
    assert not set("01IO") & set(CODE_ALPHABET)
    assert len(random_code(10)) == 10
