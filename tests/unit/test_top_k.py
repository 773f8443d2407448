"""
Tests for the bounded top-k selector.
"""
import math
import random
import unittest

from nano_vectordb.engine.top_k import TopKSelector, score_key


class TestScoreKey(unittest.TestCase):
    """Test the total order used to rank scores."""

    def test_real_scores_ordered(self):
        self.assertLess(score_key(0.8), score_key(0.9))
        self.assertEqual(score_key(0.5), score_key(0.5))
        self.assertGreater(score_key(0.4), score_key(0.3))

    def test_nan_below_everything(self):
        self.assertLess(score_key(math.nan), score_key(0.5))
        self.assertLess(score_key(math.nan), score_key(-math.inf))
        self.assertGreater(score_key(0.5), score_key(math.nan))

    def test_nan_equals_nan(self):
        self.assertEqual(score_key(math.nan), score_key(math.nan))


class TestTopKSelector(unittest.TestCase):
    """Test the TopKSelector class."""

    def test_keeps_highest_scores(self):
        selector = TopKSelector(3)
        selector.extend([(0.1, 0), (0.9, 1), (0.5, 2), (0.7, 3), (0.2, 4)])

        self.assertEqual(len(selector), 3)
        self.assertEqual(selector.into_sorted(), [(0.9, 1), (0.7, 3), (0.5, 2)])

    def test_fewer_candidates_than_k(self):
        selector = TopKSelector(10)
        selector.extend([(0.3, 0), (0.6, 1)])

        self.assertEqual(selector.into_sorted(), [(0.6, 1), (0.3, 0)])

    def test_zero_k_keeps_nothing(self):
        selector = TopKSelector(0)
        selector.extend([(0.3, 0), (0.6, 1)])

        self.assertEqual(len(selector), 0)
        self.assertEqual(selector.into_sorted(), [])

    def test_negative_k_rejected(self):
        with self.assertRaises(ValueError):
            TopKSelector(-1)

    def test_nan_never_promoted(self):
        """A NaN score is evicted before any real score."""
        selector = TopKSelector(2)
        selector.extend([(math.nan, 0), (-0.5, 1), (0.1, 2)])

        self.assertEqual(selector.into_sorted(), [(0.1, 2), (-0.5, 1)])

    def test_nan_kept_when_room(self):
        """NaN candidates sort last when there is room for them."""
        selector = TopKSelector(3)
        selector.extend([(math.nan, 0), (0.2, 1), (math.nan, 2)])

        result = selector.into_sorted()
        self.assertEqual(result[0], (0.2, 1))
        self.assertTrue(all(math.isnan(score) for score, _ in result[1:]))
        self.assertEqual(sorted(index for _, index in result[1:]), [0, 2])

    def test_ties_prefer_lower_index(self):
        selector = TopKSelector(2)
        selector.extend([(0.5, 3), (0.5, 1), (0.5, 2), (0.5, 0)])

        self.assertEqual(selector.into_sorted(), [(0.5, 0), (0.5, 1)])

    def test_merge_matches_single_pass(self):
        """Merging partition results gives the same top-k as one selector."""
        rng = random.Random(42)
        candidates = [(round(rng.uniform(-1, 1), 2), i) for i in range(500)]

        single = TopKSelector(7)
        single.extend(candidates)

        for partitions in (2, 3, 8, 500):
            size = -(-len(candidates) // partitions)
            merged = TopKSelector(7)
            for start in range(0, len(candidates), size):
                part = TopKSelector(7)
                part.extend(candidates[start:start + size])
                merged.merge(part)
            self.assertEqual(merged.into_sorted(), single.into_sorted())

    def test_merge_preserves_nan(self):
        left = TopKSelector(3)
        left.push(math.nan, 0)
        right = TopKSelector(3)
        right.push(0.4, 1)

        result = left.merge(right).into_sorted()
        self.assertEqual(result[0], (0.4, 1))
        self.assertTrue(math.isnan(result[1][0]))
        self.assertEqual(result[1][1], 0)


if __name__ == "__main__":
    unittest.main()
