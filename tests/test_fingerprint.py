import pytest

from promcommon.fingerprint import (
    Fingerprint,
    hash_add,
    hash_add_byte,
    hash_new,
    label_set_fast_fingerprint,
    label_set_fingerprint,
    labels_to_signature,
    parse_fingerprint,
    signature_for_labels,
    signature_without_labels,
)

EMPTY = 14695981039346656037
GB = {"name": "garland, briggs", "fear": "love is not enough"}


def test_fingerprint_from_string():
    assert Fingerprint.from_string("4294967295") == 285960729237
    assert parse_fingerprint("4294967295") == 285960729237


@pytest.mark.parametrize("bad", ["", "0x10", "-1", "zz", "1_0", "1" * 17])
def test_fingerprint_from_bad_string(bad):
    with pytest.raises(ValueError):
        Fingerprint.from_string(bad)


def test_fingerprint_str_and_roundtrip():
    assert str(Fingerprint(255)) == "00000000000000ff"
    f = Fingerprint(5799056148416392346)
    assert parse_fingerprint(str(f)) == f


def test_fingerprint_range():
    with pytest.raises(ValueError):
        Fingerprint(-1)
    with pytest.raises(ValueError):
        Fingerprint(1 << 64)


def test_fingerprints_sort():
    values = [14695981039346656037, 285960729237, 0, 4294967295, 285960729237,
              18446744073709551615]
    got = sorted(Fingerprint(v) for v in values)
    assert got == [0, 4294967295, 285960729237, 285960729237,
                   14695981039346656037, 18446744073709551615]


def test_fingerprint_set_intersection():
    a = {Fingerprint(v) for v in (14695981039346656037, 0, 285960729237)}
    b = {Fingerprint(v) for v in (14695981039346656037, 0, 4294967295)}
    assert a & b == {Fingerprint(14695981039346656037), Fingerprint(0)}


def test_hash_primitives():
    assert hash_new() == EMPTY
    assert hash_add(hash_new(), "a") == 0xAF63DC4C8601EC8C
    assert hash_add_byte(hash_new(), ord("a")) == hash_add(hash_new(), "a")


@pytest.mark.parametrize(
    "labels,expected",
    [
        ({}, EMPTY),
        (None, EMPTY),
        (GB, 5799056148416392346),
        ({"first-label": "first-label-value"}, 5146282821936882169),
        ({"first-label": "first-label-value", "second-label": "second-label-value"},
         3195800080984914717),
        ({"first-label": "first-label-value", "second-label": "second-label-value",
          "third-label": "third-label-value"}, 13843036195897128121),
    ],
)
def test_labels_to_signature(labels, expected):
    assert labels_to_signature(labels) == expected
    assert label_set_fingerprint(labels) == expected


@pytest.mark.parametrize(
    "labels,expected",
    [
        ({}, EMPTY),
        (GB, 12952432476264840823),
        ({"first-label": "first-label-value"}, 5147259542624943964),
        ({"first-label": "first-label-value", "second-label": "second-label-value"},
         18269973311206963528),
        ({"first-label": "first-label-value", "second-label": "second-label-value",
          "third-label": "third-label-value"}, 15738406913934009676),
    ],
)
def test_fast_fingerprint(labels, expected):
    assert label_set_fast_fingerprint(labels) == expected


@pytest.mark.parametrize(
    "metric,labels,expected",
    [
        ({}, (), EMPTY),
        ({}, ("empty",), 7187873163539638612),
        (GB, ("empty",), 7187873163539638612),
        (GB, ("fear", "name"), 5799056148416392346),
        ({**GB, "foo": "bar"}, ("fear", "name"), 5799056148416392346),
        ({**GB, "foo": "bar"}, ("name", "fear"), 5799056148416392346),
        (GB, (), EMPTY),
    ],
)
def test_signature_for_labels(metric, labels, expected):
    assert signature_for_labels(metric, *labels) == expected


@pytest.mark.parametrize(
    "metric,labels,expected",
    [
        ({}, None, EMPTY),
        (GB, {"fear", "name"}, EMPTY),
        ({**GB, "foo": "bar"}, {"foo"}, 5799056148416392346),
        (GB, set(), 5799056148416392346),
        (GB, None, 5799056148416392346),
    ],
)
def test_signature_without_labels(metric, labels, expected):
    assert signature_without_labels(metric, labels) == expected