import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hireflow.matching.scorer import calculate_match_score, round_half_up  # noqa: E402
from hireflow.schemas.matching import SkillRequirement  # noqa: E402


def _skills(*pairs):
    return [{"name": name, "weight": weight} for name, weight in pairs]


class SkillMatchScorerTests(unittest.TestCase):
    def test_half_matched_weights(self):
        result = calculate_match_score(["python", "Excel"], _skills(("Python", 5), ("SQL", 5)))
        self.assertEqual(result.matched, ["Python"])
        self.assertEqual(result.missing, ["SQL"])
        self.assertEqual(result.total_weight, 10)
        self.assertEqual(result.matched_weight, 5)
        self.assertEqual(result.score, 50)

    def test_substring_policy_matches_java_against_javascript(self):
        result = calculate_match_score(["javascript"], _skills(("Java", 3)))
        self.assertEqual(result.matched, ["Java"])
        self.assertEqual(result.score, 100)

    def test_substring_policy_is_bidirectional(self):
        result = calculate_match_score(["c"], _skills(("C++", 2), ("Go", 2)))
        self.assertEqual(result.matched, ["C++"])
        self.assertEqual(result.missing, ["Go"])

    def test_empty_candidate_skills_miss_everything(self):
        for candidate in ([], None):
            result = calculate_match_score(candidate, _skills(("Python", 5), ("SQL", 3)))
            self.assertEqual(result.score, 0)
            self.assertEqual(result.matched, [])
            self.assertEqual(result.missing, ["Python", "SQL"])
            self.assertEqual(result.total_weight, 8)
            self.assertEqual(result.matched_weight, 0)

    def test_job_without_requirements_scores_zero(self):
        result = calculate_match_score(["python"], [])
        self.assertEqual(result.score, 0)
        self.assertEqual(result.total_weight, 0)
        self.assertEqual(result.matched, [])
        self.assertEqual(result.missing, [])

    def test_all_requirements_present_scores_full(self):
        job = _skills(("Python", 5), ("Docker", 2), ("PostgreSQL", 9))
        result = calculate_match_score(["  PYTHON ", "docker", "postgresql"], job)
        self.assertEqual(result.score, 100)
        self.assertEqual(result.missing, [])

    def test_duplicate_requirements_are_scored_independently(self):
        result = calculate_match_score(["sql"], _skills(("SQL", 2), ("SQL", 4), ("Rust", 4)))
        self.assertEqual(result.matched, ["SQL", "SQL"])
        self.assertEqual(result.missing, ["Rust"])
        self.assertEqual(result.matched_weight, 6)
        self.assertEqual(result.total_skills, 3)
        self.assertEqual(result.score, 60)

    def test_matched_and_missing_partition_requirements(self):
        job = _skills(("Python", 5), ("SQL", 5), ("Kubernetes", 3), ("Terraform", 1))
        result = calculate_match_score(["python", "terraform"], job)
        self.assertCountEqual(result.matched + result.missing, [skill["name"] for skill in job])
        self.assertEqual(result.matched_skills, len(result.matched))

    def test_score_is_order_and_case_invariant(self):
        job = _skills(("Python", 5), ("SQL", 3), ("AWS", 2))
        baseline = calculate_match_score(["python", "aws"], job).score
        reordered = calculate_match_score([" AWS", "Python "], list(reversed(job))).score
        shouted = calculate_match_score(["python", "aws"], _skills(("  PYTHON", 5), ("sql ", 3), ("aws", 2))).score
        self.assertEqual(baseline, 70)
        self.assertEqual(reordered, baseline)
        self.assertEqual(shouted, baseline)

    def test_rounds_half_up(self):
        result = calculate_match_score(["go"], _skills(("Go", 1), ("Rust", 7)))
        self.assertEqual(result.score, 13)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(66.4), 66)

    def test_accepts_requirement_models(self):
        job = [SkillRequirement(name="FastAPI", weight=4), SkillRequirement(name="Redis", weight=4)]
        result = calculate_match_score(["fastapi"], job)
        self.assertEqual(result.score, 50)

    def test_breakdown_uses_persisted_field_names(self):
        breakdown = calculate_match_score(["python"], _skills(("Python", 5), ("SQL", 5))).to_breakdown()
        self.assertEqual(
            set(breakdown),
            {"score", "matched", "missing", "totalSkills", "matchedSkills", "totalWeight", "matchedWeight"},
        )
        self.assertEqual(breakdown["matchedSkills"], 1)
        self.assertEqual(breakdown["totalSkills"], 2)


if __name__ == "__main__":
    unittest.main()
