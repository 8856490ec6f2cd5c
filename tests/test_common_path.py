import pytest

from media_dedup.analysis.common_path import CommonPathResolver
from media_dedup.models import Occurrence, PathAnalysis


def occ(*paths):
    return [Occurrence(path=p, size=100) for p in paths]


@pytest.mark.parametrize(
    "paths,want_suffix,want_ancestor",
    [
        (   # basic: extra thumbnail directory, same root
            ["/a/b/Drive/foobar/c/Desktop Pictures/.thumbnails/Flower 10.jpg",
             "/a/b/Drive/foobar/c/Desktop Pictures/Flower 10.jpg"],
            "Flower 10.jpg",
            "/a/b/Drive/foobar/c/Desktop Pictures",
        ),
        (   # common path in the middle, different roots
            ["/x/y/Drive/foobar/c/Desktop Pictures/.thumbnails/Flower 10.jpg",
             "/m/n/Drive/foobar/c/Desktop Pictures/Flower 10.jpg"],
            "Flower 10.jpg",
            "/Drive/foobar/c/Desktop Pictures",
        ),
        (   # nothing shared except the file name
            ["/a/b/Drive/foobar/c/Desktop Pictures/.thumbnails/Flower 10.jpg",
             "/x/y/z/m/n/o/Flower 10.jpg"],
            "Flower 10.jpg",
            "",
        ),
    ],
)
def test_resolve_scenarios(paths, want_suffix, want_ancestor):
    got = CommonPathResolver(sep="/").resolve(occ(*paths))
    assert got.common_suffix == want_suffix
    assert got.common_ancestor == want_ancestor


def test_scenarios_do_not_depend_on_occurrence_order():
    paths = ["/x/y/Drive/foobar/c/Desktop Pictures/.thumbnails/Flower 10.jpg",
             "/m/n/Drive/foobar/c/Desktop Pictures/Flower 10.jpg"]
    forward = CommonPathResolver(sep="/").resolve(occ(*paths))
    backward = CommonPathResolver(sep="/").resolve(occ(*reversed(paths)))
    assert forward == backward


def test_singleton_and_empty_sets_yield_nothing():
    resolver = CommonPathResolver(sep="/")
    assert resolver.resolve(occ("/a/b/photo.jpg")) == PathAnalysis("", "")
    assert resolver.resolve([]) == PathAnalysis("", "")


def test_suffix_extends_over_shared_directories():
    got = CommonPathResolver(sep="/").resolve(occ("/a/b/c/x.jpg", "/m/b/c/x.jpg"))
    assert got.common_suffix == "b/c/x.jpg"
    assert got.common_ancestor == ""


def test_suffix_is_trailing_part_of_every_occurrence():
    paths = ["/vol1/photos/2019/trip/IMG_1.jpg",
             "/vol2/backup/photos/2019/trip/IMG_1.jpg",
             "/vol3/trip/IMG_1.jpg"]
    got = CommonPathResolver(sep="/").resolve(occ(*paths))
    assert got.common_suffix
    for p in paths:
        assert p.endswith("/" + got.common_suffix)


def test_single_component_paths():
    got = CommonPathResolver(sep="/").resolve(occ("IMG_1.jpg", "IMG_1.jpg"))
    assert got == PathAnalysis("IMG_1.jpg", "")


def test_relative_paths_share_leading_directories():
    got = CommonPathResolver(sep="/").resolve(occ("photos/2019/thumbs/a.jpg", "photos/2019/a.jpg"))
    assert got.common_suffix == "a.jpg"
    assert got.common_ancestor == "photos/2019"


def test_windows_separator():
    got = CommonPathResolver(sep="\\").resolve(occ(r"C:\pics\.thumbs\a.jpg", r"C:\pics\a.jpg"))
    assert got.common_suffix == "a.jpg"
    assert got.common_ancestor == r"C:\pics"
