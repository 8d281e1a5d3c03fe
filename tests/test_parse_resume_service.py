import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hireflow.ai.resume_extractor import ResumeExtractionError  # noqa: E402
from hireflow.schemas.recruiting import ParsedResume  # noqa: E402
from hireflow.services.errors import NotFoundError, ParseResumeError, RecruitingError  # noqa: E402
from hireflow.services.parse_resume_service import parse_resume, rescore_job  # noqa: E402
from hireflow.storage import db  # noqa: E402
from hireflow.storage.db import StorageError  # noqa: E402
from tests.helpers import TempStorage  # noqa: E402

EXTRACTOR = "hireflow.services.parse_resume_service.extract_resume_fields"


class ParseResumeWorkflowTests(unittest.TestCase):
    def setUp(self):
        self.storage = TempStorage()
        self.storage.start()
        self.employer = db.create_user(full_name="Acme Hiring", email="hr@acme.test", role="employer")
        self.candidate = db.create_user(full_name="Jane Roe", email="jane@example.com", role="candidate")
        self.backend_job = db.create_job(
            employer_id=self.employer["id"],
            title="Backend Engineer",
            description="Build services.",
            skills=[{"name": "Python", "weight": 5}, {"name": "SQL", "weight": 5}],
            min_experience=2,
            threshold=50,
        )
        self.data_job = db.create_job(
            employer_id=self.employer["id"],
            title="Data Engineer",
            description="Build pipelines.",
            skills=[{"name": "Spark", "weight": 8}, {"name": "Python", "weight": 2}],
            min_experience=2,
            threshold=70,
        )
        self.closed_job = db.create_job(
            employer_id=self.employer["id"],
            title="Old Role",
            description="Closed.",
            skills=[{"name": "Python", "weight": 1}],
            min_experience=0,
            threshold=0,
        )
        db.update_job_status(self.closed_job["id"], "closed")

        resume_dir = self.storage.resume_root / str(self.candidate["id"])
        resume_dir.mkdir(parents=True)
        (resume_dir / "cv.txt").write_text("Jane Roe\nPython and Excel", encoding="utf-8")
        self.resume = db.create_resume(
            candidate_id=self.candidate["id"],
            file_path=f"{self.candidate['id']}/cv.txt",
            file_name="cv.txt",
            content_type="text/plain",
        )

    def tearDown(self):
        self.storage.stop()

    def _parsed(self, skills):
        return ParsedResume(name="Jane Roe", email="jane@example.com", skills=skills)

    def test_parse_scores_active_jobs_and_shortlists(self):
        with patch(EXTRACTOR, return_value=self._parsed(["python", "Excel"])) as extractor:
            result = parse_resume(self.resume["id"])

        extractor.assert_called_once_with("Jane Roe\nPython and Excel")
        self.assertTrue(result.success)
        self.assertEqual(result.matches_created, 2)

        stored = db.get_resume(self.resume["id"])
        self.assertEqual(stored["status"], "processed")
        self.assertEqual(stored["parsed"]["skills"], ["python", "Excel"])

        matches = {match["job_id"]: match for match in db.list_matches_for_resume(self.resume["id"])}
        self.assertEqual(set(matches), {self.backend_job["id"], self.data_job["id"]})
        backend = matches[self.backend_job["id"]]
        self.assertEqual(backend["score"], 50)
        self.assertEqual(backend["breakdown"]["matched"], ["Python"])
        self.assertEqual(backend["breakdown"]["missing"], ["SQL"])
        self.assertTrue(backend["shortlisted"])
        self.assertEqual(matches[self.data_job["id"]]["score"], 20)
        self.assertFalse(matches[self.data_job["id"]]["shortlisted"])

        logs = db.list_audit_logs(user_id=self.candidate["id"])
        self.assertEqual(logs[0]["action"], "resume_parsed")
        self.assertEqual(logs[0]["metadata"]["resumeId"], self.resume["id"])

    def test_reparse_upserts_single_match_per_job(self):
        with patch(EXTRACTOR, return_value=self._parsed(["python"])):
            parse_resume(self.resume["id"])
        with patch(EXTRACTOR, return_value=self._parsed(["python", "sql", "spark"])):
            parse_resume(self.resume["id"])

        matches = db.list_matches_for_resume(self.resume["id"])
        self.assertEqual(len(matches), 2)
        self.assertEqual({match["score"] for match in matches}, {100})
        self.assertEqual(len(db.list_shortlist_for_job(self.data_job["id"])), 1)

    def test_ai_failure_marks_resume_failed(self):
        error = ResumeExtractionError("AI parsing failed: 500", code="ai_request_failed")
        with patch(EXTRACTOR, side_effect=error):
            with self.assertRaises(ParseResumeError) as ctx:
                parse_resume(self.resume["id"])
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(db.get_resume(self.resume["id"])["status"], "failed")
        self.assertEqual(db.list_matches_for_resume(self.resume["id"]), [])

    def test_missing_file_marks_resume_failed(self):
        (self.storage.resume_root / str(self.candidate["id"]) / "cv.txt").unlink()
        with patch(EXTRACTOR) as extractor:
            with self.assertRaises(ParseResumeError):
                parse_resume(self.resume["id"])
        extractor.assert_not_called()
        self.assertEqual(db.get_resume(self.resume["id"])["status"], "failed")

    def test_unknown_resume(self):
        with self.assertRaises(NotFoundError):
            parse_resume(9999)

    def test_rescore_job_uses_processed_resumes(self):
        with patch(EXTRACTOR, return_value=self._parsed(["spark", "python"])):
            parse_resume(self.resume["id"])
        new_job = db.create_job(
            employer_id=self.employer["id"],
            title="Platform Engineer",
            description="Run platforms.",
            skills=[{"name": "Spark", "weight": 3}, {"name": "Kubernetes", "weight": 1}],
            min_experience=0,
            threshold=75,
        )
        result = rescore_job(new_job["id"])
        self.assertEqual(result.matches_updated, 1)
        self.assertEqual(result.shortlisted, 1)
        self.assertEqual(db.list_matches_for_job(new_job["id"])[0]["score"], 75)

        with self.assertRaises(NotFoundError):
            rescore_job(9999)

    def test_rescore_rejects_closed_job(self):
        with patch(EXTRACTOR, return_value=self._parsed(["python", "sql"])):
            parse_resume(self.resume["id"])

        with self.assertRaises(RecruitingError) as ctx:
            rescore_job(self.closed_job["id"])
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(db.list_matches_for_job(self.closed_job["id"]), [])
        self.assertEqual(db.list_shortlist_for_job(self.closed_job["id"]), [])

    def test_audit_log_failure_does_not_fail_parse(self):
        with patch(EXTRACTOR, return_value=self._parsed(["python"])), patch(
            "hireflow.storage.db.insert_audit_log", side_effect=StorageError("disk full")
        ):
            with self.assertLogs("hireflow.services.parse_resume_service", level="ERROR") as logs:
                result = parse_resume(self.resume["id"])

        self.assertTrue(result.success)
        self.assertEqual(result.matches_created, 2)
        self.assertEqual(db.get_resume(self.resume["id"])["status"], "processed")
        self.assertTrue(any("audit_log_insert_failed" in line for line in logs.output))
        self.assertEqual(db.list_audit_logs(user_id=self.candidate["id"]), [])


if __name__ == "__main__":
    unittest.main()
