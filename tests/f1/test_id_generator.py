"""Tests for generated problem ids."""

from datetime import datetime, timezone

from mastery.core.id_generator import (
    FALLBACK_PREFIX,
    format_candidate,
    generate_problem_id,
    subject_prefix,
)


class TestSubjectPrefix:
    """Tests for prefix derivation."""

    def test_first_four_letters_uppercased(self):
        assert subject_prefix("Algebra") == "ALGE"

    def test_skips_non_letters(self):
        assert subject_prefix("3D geometry") == "DGEO"

    def test_short_names_use_all_letters(self):
        assert subject_prefix("C++") == "C"

    def test_no_letters_uses_fallback(self):
        assert subject_prefix("2024") == FALLBACK_PREFIX

    def test_unicode_letters(self):
        assert subject_prefix("физика") == "ФИЗИ"


class TestGenerateProblemId:
    """Tests for sequential probing."""

    def test_first_three_problems_are_sequential(self, log):
        """Subject 'Algebra' yields ALGE_001, ALGE_002, ALGE_003."""
        ids = [log(title=f"Problem {n}").generated_id for n in range(1, 4)]

        assert ids == ["ALGE_001", "ALGE_002", "ALGE_003"]

    def test_existing_problem_keeps_its_id(self, log):
        """Logging again on the same problem does not consume an id."""
        first = log(title="Problem 1")
        again = log(title="Problem 1")
        second = log(title="Problem 2")

        assert again.generated_id == first.generated_id == "ALGE_001"
        assert second.generated_id == "ALGE_002"

    def test_prefix_collision_across_subjects_is_skipped(self, log):
        """Ids are unique store-wide, so a shared prefix keeps counting."""
        a = log(subject="Algebra", title="A")
        b = log(subject="Algebraic topology", title="B")

        assert a.generated_id == "ALGE_001"
        assert b.generated_id == "ALGE_002"

    def test_zero_padding(self):
        assert format_candidate("ALGE", 7) == "ALGE_007"
        assert format_candidate("ALGE", 1234) == "ALGE_1234"

    def test_exhausted_prefix_falls_back_to_timestamp(self, store, log):
        """After max_probes misses, a time-derived suffix is used."""
        for n in range(3):
            log(subject="123", title=f"P{n}")

        now = datetime(2025, 1, 6, 10, 0, 0)
        with store.transaction() as conn:
            generated = generate_problem_id(conn, "456", now=now, max_probes=3)

        expected = int(now.replace(tzinfo=timezone.utc).timestamp())
        assert generated == f"PROB_{expected}"

    def test_taken_fallback_gets_numeric_suffix(self, store, log):
        """Two fallbacks in the same second do not collide."""
        for n in range(3):
            log(subject="123", title=f"P{n}")

        now = datetime(2025, 1, 6, 10, 0, 0)
        with store.transaction() as conn:
            first = generate_problem_id(conn, "456", now=now, max_probes=3)
            conn.execute(
                """
                INSERT INTO problems (generated_id, material_id, title)
                SELECT ?, material_id, 'Extra' FROM problems LIMIT 1
                """,
                (first,),
            )
            second = generate_problem_id(conn, "456", now=now, max_probes=3)

        assert second == f"{first}_2"
