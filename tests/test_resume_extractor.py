import json
import sys
import unittest
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from hireflow.ai import resume_extractor  # noqa: E402
from hireflow.ai.resume_extractor import ResumeExtractionError, extract_resume_fields  # noqa: E402


def _tool_response(arguments):
    tool_call = SimpleNamespace(function=SimpleNamespace(name="parse_resume", arguments=arguments))
    message = SimpleNamespace(content=None, tool_calls=[tool_call])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class ResumeExtractorTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        patcher_enabled = patch.object(resume_extractor, "extraction_enabled", return_value=True)
        patcher_client = patch.object(resume_extractor, "_client", return_value=self.client)
        patcher_enabled.start()
        patcher_client.start()
        self.addCleanup(patcher_enabled.stop)
        self.addCleanup(patcher_client.stop)

    def test_forced_tool_call_is_parsed(self):
        self.client.chat.completions.create.return_value = _tool_response(
            json.dumps(
                {
                    "name": "Jane Roe",
                    "email": "jane@example.com",
                    "skills": ["Python", "SQL"],
                    "experience_years": 4,
                }
            )
        )
        parsed = extract_resume_fields("Jane Roe\nPython, SQL")

        self.assertEqual(parsed.name, "Jane Roe")
        self.assertEqual(parsed.skills, ["Python", "SQL"])
        self.assertEqual(parsed.experience_years, 4)
        kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["tool_choice"], {"type": "function", "function": {"name": "parse_resume"}})
        self.assertEqual(kwargs["tools"][0]["function"]["parameters"]["required"], ["name", "skills"])
        self.assertIn("Jane Roe\nPython, SQL", kwargs["messages"][1]["content"])

    def test_missing_tool_call_raises(self):
        message = SimpleNamespace(content="plain text", tool_calls=None)
        self.client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
        with self.assertRaises(ResumeExtractionError) as ctx:
            extract_resume_fields("resume text")
        self.assertEqual(ctx.exception.code, "no_structured_data")

    def test_invalid_arguments_raise(self):
        self.client.chat.completions.create.return_value = _tool_response("{not json")
        with self.assertRaises(ResumeExtractionError) as ctx:
            extract_resume_fields("resume text")
        self.assertEqual(ctx.exception.code, "invalid_payload")

        self.client.chat.completions.create.return_value = _tool_response(json.dumps({"skills": ["Go"]}))
        with self.assertRaises(ResumeExtractionError) as ctx:
            extract_resume_fields("resume text")
        self.assertEqual(ctx.exception.code, "invalid_payload")


class ResumeExtractorDisabledTests(unittest.TestCase):
    def test_disabled_extraction_raises_without_calling_ai(self):
        disabled = replace(resume_extractor.settings, ai_extraction_enabled=False)
        with patch.object(resume_extractor, "settings", disabled), patch.object(resume_extractor, "_client") as client:
            with self.assertRaises(ResumeExtractionError) as ctx:
                extract_resume_fields("resume text")
        self.assertEqual(ctx.exception.code, "ai_disabled")
        client.assert_not_called()

    def test_placeholder_key_disables_extraction(self):
        placeholder = replace(resume_extractor.settings, ai_extraction_enabled=True, openai_api_key="your_key_here")
        with patch.object(resume_extractor, "settings", placeholder):
            self.assertFalse(resume_extractor.extraction_enabled())


if __name__ == "__main__":
    unittest.main()
