# tests/test_rating_bucket.py

import pytest

from models.rating_bucket import RatingBucket


def test_rating_bucket_to_and_from_dict():
    bucket = RatingBucket("A", 80)

    assert bucket.to_dict() == {"label": "A", "min_score": 80}
    assert RatingBucket.from_dict({"label": "A", "min_score": 80}) == bucket


@pytest.mark.parametrize("bad_min", [-1, 101])
def test_rating_bucket_rejects_out_of_range_threshold(bad_min):
    with pytest.raises(ValueError):
        RatingBucket("A", bad_min)


@pytest.mark.parametrize("bad_min", [80.5, "80", None, False])
def test_rating_bucket_rejects_non_integer_threshold(bad_min):
    with pytest.raises(TypeError):
        RatingBucket("A", bad_min)


def test_rating_bucket_label_must_be_string():
    with pytest.raises(TypeError):
        RatingBucket(None, 80)


def test_rating_bucket_allows_empty_label():
    assert RatingBucket("", 0).label == ""
