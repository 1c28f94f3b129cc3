import pytest

from lzwerrors import DictionaryLookupError
from tst import TernarySearchTree


def seeded_tree():
    tst = TernarySearchTree()
    tst.insert_balanced((bytes([i]), i) for i in range(128))
    return tst


def test_insert_and_lookup():
    tst = TernarySearchTree()
    assert tst.insert(b"AB", 129)
    assert tst.insert(b"ABC", 130)
    assert tst.lookup(b"AB") == 129
    assert tst.lookup(b"ABC") == 130
    assert len(tst) == 2


def test_duplicate_insert_keeps_first_code():
    tst = TernarySearchTree()
    tst.insert(b"hello", 200)
    assert not tst.insert(b"hello", 201)
    assert tst.lookup(b"hello") == 200
    assert len(tst) == 1


def test_empty_key_rejected():
    with pytest.raises(ValueError):
        TernarySearchTree().insert(b"", 1)


def test_lookup_missing_key():
    tst = TernarySearchTree()
    tst.insert(b"ABC", 130)
    with pytest.raises(DictionaryLookupError):
        tst.lookup(b"AB")
    with pytest.raises(LookupError):
        tst.lookup(b"ABCD")


def test_contains():
    tst = seeded_tree()
    tst.insert(b"th", 129)
    assert b"t" in tst
    assert b"th" in tst
    assert b"the" not in tst
    assert b"" not in tst


def test_insert_balanced_puts_median_at_root():
    tst = seeded_tree()
    assert len(tst) == 128
    assert tst.root.character == 64
    assert tst.lookup(b"\x00") == 0
    assert tst.lookup(b"\x7f") == 127


def test_longest_prefix_from_offset():
    tst = seeded_tree()
    tst.insert(b"AB", 129)
    tst.insert(b"ABC", 130)
    assert tst.longest_prefix_from(b"XABCD", 1) == b"ABC"
    assert tst.longest_prefix_from(b"ABD", 0) == b"AB"
    assert tst.longest_prefix_from(b"ABD", 2) == b"D"


def test_longest_prefix_skips_unstored_intermediate():
    tst = seeded_tree()
    tst.insert(b"AB", 129)
    tst.insert(b"ABCD", 130)
    assert tst.longest_prefix_from(b"ABCE", 0) == b"AB"
    assert tst.longest_prefix_from(b"ABCD", 0) == b"ABCD"


def test_longest_prefix_stops_at_buffer_end():
    tst = seeded_tree()
    tst.insert(b"AB", 129)
    tst.insert(b"ABC", 130)
    assert tst.longest_prefix_from(b"AB", 0) == b"AB"


def test_longest_prefix_unseeded_byte():
    tst = seeded_tree()
    with pytest.raises(DictionaryLookupError):
        tst.longest_prefix_from(b"A\x90", 1)


def test_longest_prefix_past_end():
    tst = seeded_tree()
    with pytest.raises(DictionaryLookupError):
        tst.longest_prefix_from(b"A", 1)


def test_long_keys_do_not_recurse():
    tst = seeded_tree()
    key = b"a" * 5000
    tst.insert(key, 129)
    assert tst.lookup(key) == 129
    assert tst.longest_prefix_from(key + b"b", 0) == key
