import threading
from datetime import datetime

from media_dedup.models import Classification, ScanStats
from media_dedup.registry import Registry

JPEG = Classification(mime_type="image", subtype="jpeg", extension=".jpg")
DT = datetime(2022, 1, 1)


def test_first_sighting_seeds_record():
    reg = Registry()
    reg.record("photo.jpg", "/a/photo.jpg", 100, DT, JPEG, {"Model": "cam"})

    rec = reg.get("photo.jpg")
    assert rec.size == 100
    assert rec.mod_time == DT
    assert rec.classification == JPEG
    assert rec.metadata == {"Model": "cam"}
    assert not rec.size_mismatch
    assert rec.paths == ["/a/photo.jpg"]


def test_size_mismatch_flagged_with_both_occurrences():
    stats = ScanStats()
    reg = Registry(stats)
    reg.record("photo.jpg", "/a/photo.jpg", 100, DT, JPEG)
    reg.record("photo.jpg", "/b/photo.jpg", 250, DT, JPEG)

    rec = reg.get("photo.jpg")
    assert rec.size_mismatch
    assert len(rec.occurrences) == 2
    assert [o.size for o in rec.occurrences] == [100, 250]
    assert stats.get("size_mismatches") == 1


def test_record_returns_detached_copy():
    reg = Registry()
    rec = reg.record("photo.jpg", "/a/photo.jpg", 100, DT, JPEG)
    rec.occurrences.clear()
    rec.size_mismatch = True

    stored = reg.get("photo.jpg")
    assert stored.paths == ["/a/photo.jpg"]
    assert not stored.size_mismatch


def test_size_mismatch_never_reverts():
    reg = Registry()
    reg.record("photo.jpg", "/a/photo.jpg", 100, DT)
    reg.record("photo.jpg", "/b/photo.jpg", 200, DT)
    # same size as the stored one: must not clear the flag
    reg.record("photo.jpg", "/c/photo.jpg", 100, DT)

    rec = reg.get("photo.jpg")
    assert rec.size_mismatch
    assert rec.size == 100
    assert len(rec.occurrences) == 3


def test_attributes_come_from_first_sighting():
    png = Classification(mime_type="image", subtype="png", extension=".jpg")
    reg = Registry()
    reg.record("photo.jpg", "/a/photo.jpg", 100, DT, JPEG, {"Model": "first"})
    reg.record("photo.jpg", "/b/photo.jpg", 100, datetime(2023, 1, 1), png, {"Model": "second"})

    rec = reg.get("photo.jpg")
    assert rec.classification == JPEG
    assert rec.metadata == {"Model": "first"}
    assert rec.mod_time == DT
    assert not rec.size_mismatch


def test_duplicate_sets_only_include_repeated_names():
    reg = Registry()
    reg.record("b.jpg", "/x/b.jpg", 1, DT)
    reg.record("a.jpg", "/x/a.jpg", 1, DT)
    reg.record("a.jpg", "/y/a.jpg", 1, DT)
    reg.record("c.jpg", "/x/c.jpg", 1, DT)
    reg.record("c.jpg", "/y/c.jpg", 1, DT)

    assert [r.name for r in reg.duplicate_sets()] == ["a.jpg", "c.jpg"]
    assert len(reg) == 3
    assert "b.jpg" in reg


def test_sorted_views():
    reg = Registry()
    reg.record("old.jpg", "/old.jpg", 10, datetime(2001, 1, 1))
    reg.record("new.jpg", "/new.jpg", 30, datetime(2021, 1, 1))
    reg.record("mid.jpg", "/mid.jpg", 20, datetime(2011, 1, 1))

    assert [r.name for r in reg.sorted_by_date()] == ["old.jpg", "mid.jpg", "new.jpg"]
    assert [r.name for r in reg.sorted_by_size()] == ["new.jpg", "mid.jpg", "old.jpg"]


def test_snapshots_are_detached_from_index():
    reg = Registry()
    reg.record("a.jpg", "/x/a.jpg", 1, DT)
    snap = reg.records()
    reg.record("a.jpg", "/y/a.jpg", 1, DT)

    assert len(snap["a.jpg"].occurrences) == 1
    assert len(reg.get("a.jpg").occurrences) == 2


def test_concurrent_records_lose_no_updates():
    reg = Registry(ScanStats())
    threads_n, per_thread = 8, 250

    def worker(t):
        for i in range(per_thread):
            # every thread hits the same 10 names
            reg.record(f"img{i % 10}.jpg", f"/t{t}/{i}/img{i % 10}.jpg", 1 + (t % 2), DT)

    threads = [threading.Thread(target=worker, args=(t,)) for t in range(threads_n)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    records = reg.records()
    assert len(records) == 10
    assert sum(len(r.occurrences) for r in records.values()) == threads_n * per_thread
    paths = [p for r in records.values() for p in r.paths]
    assert len(set(paths)) == len(paths)
    assert all(r.size_mismatch for r in records.values())
