"""Tests for review_service.app.sampling."""

from review_service.app.sampling import sample_reviews


class TestSampleReviews:

    def test_caps_to_batch_size(self):
        reviews = [f"r{i}" for i in range(60)]
        assert sample_reviews(reviews, 50) == reviews[:50]

    def test_shorter_input_is_unchanged(self):
        reviews = [f"r{i}" for i in range(37)]
        assert sample_reviews(reviews, 50) == reviews

    def test_idempotent(self):
        reviews = [f"r{i}" for i in range(75)]
        once = sample_reviews(reviews, 20)
        assert sample_reviews(once, 20) == once

    def test_returns_a_new_list(self):
        reviews = ["a", "b"]
        sampled = sample_reviews(reviews, 5)
        sampled.append("c")
        assert reviews == ["a", "b"]

    def test_empty_input_is_total(self):
        assert sample_reviews([], 50) == []
