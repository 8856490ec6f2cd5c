import logging
import time

import pytest

from media_dedup.reporting import size_listing
from media_dedup.sizes import ProgressTicker, SizeAccountant, format_size


@pytest.fixture
def sizes():
    s = SizeAccountant(sep="/")
    s.add("photos/2019", 5_000_000)
    s.add("photos/2019", 1_000_000)
    s.add("photos/2020", 2_000_000)
    s.add("music/rock", 4_000_000)
    s.add("/mnt/nas/a", 500)
    return s


def test_add_accumulates_per_directory(sizes):
    totals = sizes.totals()
    assert totals["photos/2019"] == 6_000_000
    assert totals["photos/2020"] == 2_000_000
    assert sizes.progress() == (5, 12_000_500)


def test_top_level_totals(sizes):
    assert sizes.top_level() == {
        "photos": 8_000_000,
        "music": 4_000_000,
        "/mnt": 500,
    }


def test_ranked_descending_and_truncated(sizes):
    assert sizes.ranked(2) == [("photos/2019", 6_000_000), ("music/rock", 4_000_000)]
    assert sizes.ranked(1, summary=True) == [("photos", 8_000_000)]


@pytest.mark.parametrize("top", [-1, 100])
def test_ranked_unbounded(sizes, top):
    assert len(sizes.ranked(top)) == 4
    assert len(sizes.ranked(top, summary=True)) == 3


@pytest.mark.parametrize(
    "size,expected",
    [
        (2_500_000_000, "2.5GB"),
        (95_000_000, "0.1GB"),
        (89_000_000, "89.0MB"),
        (1_200_000, "1.2MB"),
        (95_000, "0.1MB"),
        (9_436, "9.4KB"),
        (0, "0.0KB"),
    ],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_size_listing(sizes):
    lines = size_listing(sizes, 2)
    assert lines == ["Top 2 dirs", "6.0MB, photos/2019", "4.0MB, music/rock"]

    lines = size_listing(sizes, -1, summary=True)
    assert lines[0] == "Top available 3 top-level dirs"
    assert lines[1] == "8.0MB, photos"


def test_size_listing_header_counts_all_dirs(sizes):
    assert size_listing(sizes, 2, summary=True)[0] == "Top 2 top-level dirs"
    assert size_listing(sizes, 3)[0] == "Top 3 dirs"
    assert size_listing(sizes, 4)[0] == "Top available 4 dirs"
    assert size_listing(sizes, 10)[0] == "Top available 4 dirs"


def test_progress_ticker_logs_snapshots(sizes, caplog):
    caplog.set_level(logging.INFO)
    with ProgressTicker(sizes, interval=0.01):
        time.sleep(0.1)
    assert any("5 files" in r.getMessage() for r in caplog.records)


def test_progress_ticker_disabled_at_zero(sizes):
    ticker = ProgressTicker(sizes, interval=0).start()
    assert ticker._thread is None
    ticker.stop()
