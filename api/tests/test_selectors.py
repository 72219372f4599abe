import random
from collections import Counter
from types import SimpleNamespace

from django.test import SimpleTestCase

from api.selectors import CandidateSelector, RandomCandidateSelector, eligible_pool, select_random


def member(pk, is_active=True):
    return SimpleNamespace(pk=pk, is_active=is_active)


class EligiblePoolTest(SimpleTestCase):
    def test_filters_inactive_and_excluded(self):
        members = [member(1), member(2, is_active=False), member(3), member(4)]

        pool = eligible_pool(members, exclude_ids={3})

        self.assertEqual([m.pk for m in pool], [1, 4])

    def test_no_exclusions(self):
        members = [member(1), member(2)]

        self.assertEqual(len(eligible_pool(members)), 2)


class RandomCandidateSelectorTest(SimpleTestCase):
    def setUp(self):
        self.pool = [member(i) for i in range(5)]
        self.selector = RandomCandidateSelector(random.Random(42))

    def test_non_positive_count(self):
        self.assertEqual(self.selector.select(self.pool, 0), [])
        self.assertEqual(self.selector.select(self.pool, -1), [])

    def test_empty_pool(self):
        self.assertEqual(self.selector.select([], 2), [])

    def test_count_covers_pool(self):
        selected = self.selector.select(self.pool, 10)

        self.assertEqual({m.pk for m in selected}, {m.pk for m in self.pool})

    def test_subset_without_duplicates(self):
        for _ in range(50):
            selected = self.selector.select(self.pool, 2)

            self.assertEqual(len(selected), 2)
            self.assertEqual(len({m.pk for m in selected}), 2)

    def test_does_not_mutate_pool(self):
        before = [m.pk for m in self.pool]

        self.selector.select(self.pool, 2)

        self.assertEqual([m.pk for m in self.pool], before)

    def test_seeded_selection_is_reproducible(self):
        first = RandomCandidateSelector(random.Random(7)).select(self.pool, 2)
        second = RandomCandidateSelector(random.Random(7)).select(self.pool, 2)

        self.assertEqual([m.pk for m in first], [m.pk for m in second])

    def test_selection_is_roughly_uniform(self):
        counts = Counter()
        for _ in range(5000):
            counts[self.selector.select(self.pool, 1)[0].pk] += 1

        for pk in range(5):
            self.assertGreater(counts[pk], 800)
            self.assertLess(counts[pk], 1200)

    def test_select_random_helper(self):
        selected = select_random(self.pool, 3, random.Random(1))

        self.assertEqual(len(selected), 3)


class CandidateSelectorTest(SimpleTestCase):
    def test_base_selector_is_abstract(self):
        with self.assertRaises(TypeError):
            CandidateSelector()
