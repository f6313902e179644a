import unittest

from propagation import (
    InconsistentTableError,
    PropagationStats,
    build_table,
    derive_candidates,
    format_propagation_summary,
    preserve_from_file,
    propagate,
)
from strategy import Strategy, add_individually_tested_item, worst_case_strategy
from table import ND, GuaranteedBestViolation, SolutionTable, seed_closed_forms
from verify import verify_strategy

# Petersen graph: tests are vertices, items are edges. Girth 5 means the
# union of any two edges identifies them, so this separates pairs of 15 items
# with 10 tests.
PETERSEN_EDGES = [
    (0, 1), (1, 2), (2, 3), (3, 4), (4, 0),
    (0, 5), (1, 6), (2, 7), (3, 8), (4, 9),
    (5, 7), (7, 9), (9, 6), (6, 8), (8, 5),
]
PETERSEN_ROWS = [
    "".join("1" if v in edge else "." for edge in PETERSEN_EDGES) for v in range(10)
]

SAMPLE_ROWS = [
    "1111....",
    "11..11..",
    "1.1.1.1.",
    ".1.1.1.1",
    "1......1",
]


def petersen(belongs_in_file=True):
    return Strategy.from_rows(PETERSEN_ROWS, False, belongs_in_file)


def kautz_singleton(q=7, points=4):
    """Lines over GF(q) read at `points` places: a 3-disjunct design.

    Item a*q + b is the polynomial a*x + b; test (x, v) holds the items whose
    value at x is v. Two lines share at most one value, so with 4 points any
    item escapes the union of 3 others.
    """
    rows = []
    for x in range(points):
        for v in range(q):
            rows.append(
                "".join(
                    "1" if (a * x + b) % q == v else "."
                    for a in range(q)
                    for b in range(q)
                )
            )
    return Strategy.from_rows(rows, False, True)


class DeriveCandidatesTests(unittest.TestCase):
    def test_all_rules_fire_for_a_good_strategy(self):
        s = Strategy.from_rows(SAMPLE_ROWS, False, False)
        cands = derive_candidates(8, 3, s)
        self.assertEqual(
            [(c.rule, c.n, c.d, c.strategy.t) for c in cands],
            [
                ("drop-innocent", 7, 3, 5),
                ("drop-marked", 7, 2, 1),
                ("relax-d", 8, 2, 5),
                ("add-item", 9, 3, 6),
            ],
        )
        self.assertTrue(all(not c.strategy.guaranteed_best for c in cands))

    def test_drop_marked_needs_d_at_least_three(self):
        cands = derive_candidates(15, 2, petersen())
        self.assertEqual([c.rule for c in cands], ["drop-innocent", "add-item"])

    def test_worst_case_extends_diagonal(self):
        cands = derive_candidates(5, 2, worst_case_strategy(5, guaranteed_best=True))
        self.assertEqual(len(cands), 1)
        cand = cands[0]
        self.assertEqual((cand.rule, cand.n, cand.d, cand.strategy.t), ("worst-case-diagonal", 7, 3, 6))
        self.assertTrue(cand.strategy.guaranteed_best)

    def test_trivial_entries_derive_nothing_else(self):
        self.assertEqual(derive_candidates(6, 2, worst_case_strategy(6, False))[0].rule, "worst-case-diagonal")
        self.assertEqual(derive_candidates(6, 0, Strategy.from_rows([], True, False)), [])


class PropagateTests(unittest.TestCase):
    def setUp(self):
        self.table, self.stats = build_table([(ND(15, 2), petersen())], 30)

    def test_petersen_verifies(self):
        self.assertTrue(verify_strategy(15, 2, PETERSEN_ROWS).success)

    def test_wave_moves_down_and_up(self):
        t = self.table
        self.assertEqual(t[15, 2].t, 10)
        for n in (12, 13, 14):
            self.assertEqual(t[n, 2].t, 10)
        # 10 tests for 11 items is the trivial design; nothing changes there.
        self.assertEqual(t[11, 2].t, 10)
        self.assertFalse(t.was_improved(11, 2))
        self.assertEqual(t[16, 2].t, 11)
        self.assertEqual(t[30, 2].t, 25)
        self.assertEqual(self.stats.installs["drop-innocent"], 3)
        self.assertEqual(self.stats.installs["add-item"], 15)

    def test_derived_strategies_verify(self):
        for n in (12, 14, 17):
            s = self.table[n, 2]
            rows = s.tests()
            self.assertEqual(len(rows), s.t)
            self.assertTrue(all(len(r) == n for r in rows))
            self.assertTrue(verify_strategy(n, 2, rows).success, n)

    def test_only_file_entry_is_flagged(self):
        flagged = [key for key, s in self.table.items() if s.belongs_in_file]
        self.assertEqual(flagged, [ND(15, 2)])

    def test_smaller_d_never_needs_more_tests(self):
        for n in range(3, 31):
            for d in range(2, n):
                self.assertLessEqual(self.table[n, d - 1].t, self.table[n, d].t, (n, d))

    def test_summary_line(self):
        line = format_propagation_summary(self.stats, self.table)
        self.assertIn("[propagate]", line)
        self.assertIn("installs=18", line)

    def test_worst_case_diagonal_wave(self):
        table = SolutionTable()
        seed_closed_forms(table, 12)
        proven = worst_case_strategy(6, guaranteed_best=True).with_flags(belongs_in_file=True)
        preserve_from_file(table, 6, 2, proven)
        stats = propagate(table, 6, 2)
        self.assertEqual(stats.installs["worst-case-diagonal"], 3)
        for n, d in ((8, 3), (10, 4), (12, 5)):
            self.assertTrue(table[n, d].guaranteed_best)
            self.assertEqual(table[n, d].t, n - 1)

    def test_reuses_given_stats(self):
        table = SolutionTable()
        seed_closed_forms(table, 20)
        stats = PropagationStats()
        preserve_from_file(table, 15, 2, petersen())
        result = propagate(table, 15, 2, stats)
        self.assertIs(result, stats)
        self.assertEqual(stats.total_installs, 3 + 5)


class ThreeMarkedPropagateTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.table, cls.stats = build_table([(ND(49, 3), kautz_singleton())], 60)

    def test_all_rules_install(self):
        installs = self.stats.installs
        self.assertGreater(installs["drop-innocent"], 0)
        self.assertGreater(installs["drop-marked"], 0)
        self.assertGreater(installs["relax-d"], 0)
        self.assertGreater(installs["add-item"], 0)
        self.assertEqual(self.table[49, 3].t, 28)
        # Removing a marked item drops the 4 tests that hold it.
        self.assertLessEqual(self.table[48, 2].t, 24)
        self.assertLessEqual(self.table[49, 2].t, 28)

    def test_derived_entries_verify(self):
        checked = 0
        for key, s in self.table.items():
            if key.n > 40 or key.d < 2 or not self.table.was_improved(key.n, key.d):
                continue
            rows = s.tests()
            self.assertEqual(len(rows), s.t)
            self.assertTrue(verify_strategy(key.n, key.d, rows).success, key)
            checked += 1
        self.assertGreater(checked, 0)

    def test_smaller_d_never_needs_more_tests(self):
        for n in range(3, 61):
            for d in range(2, n):
                self.assertLessEqual(self.table[n, d - 1].t, self.table[n, d].t, (n, d))


class IngestionTests(unittest.TestCase):
    def test_placeholder_created_for_unseeded_key(self):
        table = SolutionTable()
        self.assertTrue(preserve_from_file(table, 15, 2, petersen()))
        self.assertEqual(table[15, 2].t, 10)
        self.assertTrue(table[15, 2].belongs_in_file)

    def test_worse_than_proven_entry_is_fatal(self):
        table = SolutionTable()
        seed_closed_forms(table, 10)
        with self.assertRaises(InconsistentTableError):
            preserve_from_file(table, 5, 2, Strategy.from_rows(["1...."] * 5, False, True))

    def test_no_better_than_trivial_is_fatal(self):
        table = SolutionTable()
        with self.assertRaises(InconsistentTableError):
            preserve_from_file(table, 6, 2, worst_case_strategy(6, False))

    def test_tie_with_derived_entry_keeps_provenance(self):
        p = petersen()
        q = Strategy.from_rows(add_individually_tested_item(15, p).tests(), False, True)
        table, _ = build_table([(ND(16, 2), q), (ND(15, 2), p)], 20)
        self.assertEqual(table[16, 2].t, 11)
        self.assertTrue(table[16, 2].belongs_in_file)
        self.assertIsNot(table[16, 2], q)

    def test_worse_record_than_derived_entry_is_fatal(self):
        proven = worst_case_strategy(6, guaranteed_best=True).with_flags(belongs_in_file=True)
        # The diagonal wave from (6, 2) proves t(8, 3) = 7 before this record is read.
        worse = Strategy.from_rows(worst_case_strategy(8, False).tests() + ["1......."], False, True)
        with self.assertRaises(InconsistentTableError):
            build_table([(ND(6, 2), proven), (ND(8, 3), worse)], 12)

    def test_unsound_data_trips_guaranteed_best_guard(self):
        bogus = Strategy.from_rows(["11....."] * 2, False, True)
        with self.assertRaises(GuaranteedBestViolation):
            build_table([(ND(7, 2), bogus)], 12)


if __name__ == "__main__":
    unittest.main()
