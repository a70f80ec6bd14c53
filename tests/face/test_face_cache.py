import json

import numpy as np

from src.smart_attendance.smart_attendance.face.cache import FaceDataCache


class FakeFaceSource:
    def __init__(self, rows):
        self.rows = rows
        self.loads = 0

    def list_enrolled(self):
        self.loads += 1
        return list(self.rows)


def _row(student_id, encoding, name="Student"):
    return {"student_id": student_id, "full_name": name, "face_encoding": encoding}


def test_not_loaded_until_first_access():
    source = FakeFaceSource([_row("s1", json.dumps([0.1, 0.2, 0.3]))])
    cache = FaceDataCache(source)

    assert cache.is_loaded is False
    assert source.loads == 0

    face = cache.get("s1")

    assert cache.is_loaded is True
    assert source.loads == 1
    np.testing.assert_allclose(face.encoding, [0.1, 0.2, 0.3])
    cache.get("s1")
    assert source.loads == 1


def test_loaded_but_empty_is_not_reloaded():
    source = FakeFaceSource([])
    cache = FaceDataCache(source)

    assert cache.get("s1") is None
    assert cache.is_loaded is True
    assert len(cache) == 0
    assert cache.get("s2") is None
    assert source.loads == 1


def test_malformed_encodings_are_skipped():
    source = FakeFaceSource(
        [
            _row("s1", json.dumps([0.5, 0.5])),
            _row("bad-json", "[0.1, "),
            _row("not-a-vector", json.dumps([[1, 2], [3, 4]])),
            _row("empty", "[]"),
            _row("null", None),
        ]
    )
    cache = FaceDataCache(source)

    assert cache.load() == 1
    assert cache.get("s1") is not None
    assert cache.get("bad-json") is None


def test_invalidate_and_reload():
    source = FakeFaceSource([_row("s1", "[1.0]")])
    cache = FaceDataCache(source)
    cache.load()

    cache.invalidate()
    assert cache.is_loaded is False

    source.rows.append(_row("s2", "[2.0]"))
    assert cache.reload() == 2
    assert source.loads == 2
    assert cache.get("s2").full_name == "Student"
