"""Tests for resume text extraction and fact detection."""

import threading
import time
from unittest.mock import MagicMock, patch

from hirescreen.config import DOCX_MIME_TYPE, PDF_MIME_TYPE
from hirescreen.resume_parser import (
    extract_education,
    extract_email,
    extract_experience,
    extract_facts,
    extract_phone,
    extract_skills,
    extract_text,
    guess_mime_type,
    parse_document,
)
from hirescreen.schemas import CandidateFacts
from hirescreen.vocabulary import DEFAULT_SKILLS, SkillVocabulary

SAMPLE_RESUME = """Jane Doe
jane.doe@example.com | +1 (555) 123-4567
Senior developer with 5 years of experience building React and Python services.
B.Tech in Computer Science, Example Institute of Technology
"""


class TestExtractEmail:
    def test_first_match_wins(self):
        text = "Primary: jane.doe@example.com, backup: jd@mail.example.org"
        assert extract_email(text) == "jane.doe@example.com"

    def test_no_email(self):
        assert extract_email("No contact details here") == ""


class TestExtractPhone:
    def test_international_with_plus(self):
        assert extract_phone("Call +1 (555) 123-4567 today") == "+1 (555) 123-4567"

    def test_us_parenthesized(self):
        assert extract_phone("Phone: (555) 123-4567") == "(555) 123-4567"

    def test_indian_grouping(self):
        assert extract_phone("Mobile 98765 43210") == "98765 43210"

    def test_generic_digit_run(self):
        assert extract_phone("Reference 1234567") == "1234567"

    def test_too_few_digits(self):
        assert extract_phone("Room 12345") == ""

    def test_earlier_pattern_wins(self):
        text = "Office (555) 123-4567, mobile +44 20 7946 0958"
        assert extract_phone(text) == "+44 20 7946 0958"


class TestExtractSkills:
    def test_vocabulary_order(self):
        text = "Python and React developer, knows Docker"
        assert extract_skills(text) == ("React", "Python", "Docker")

    def test_case_insensitive(self):
        assert extract_skills("JAVASCRIPT everywhere") == ("JavaScript", "Java")

    def test_capped_at_ten(self):
        text = " ".join(DEFAULT_SKILLS)
        assert extract_skills(text) == DEFAULT_SKILLS[:10]

    def test_injected_vocabulary(self):
        vocabulary = SkillVocabulary({"k8s": "Kubernetes", "kubernetes": "Kubernetes"})
        assert extract_skills("Deployed on k8s and Kubernetes", vocabulary) == ("Kubernetes",)


class TestExtractExperience:
    def test_years_of_experience(self):
        assert extract_experience("I have 5 years of experience") == 5

    def test_experience_colon(self):
        assert extract_experience("Experience: 7 years") == 7

    def test_range_takes_lower_bound(self):
        assert extract_experience("3-5 years in backend work") == 3

    def test_fallback_takes_maximum_mention(self):
        assert extract_experience("Worked 2 years at Acme and 4 years at Initech") == 4

    def test_ceiling_rejects_garbage(self):
        assert extract_experience("120 years of experience") == 0

    def test_nothing_found(self):
        assert extract_experience("Fresh graduate") == 0


class TestExtractEducation:
    def test_first_degree_line(self):
        text = "Jane Doe\nB.Tech in Computer Science, XYZ University\nMaster of Arts"
        assert extract_education(text) == "B.Tech in Computer Science, XYZ University"

    def test_pronouns_do_not_count(self):
        assert extract_education("About me\nI like to be useful") == ""

    def test_truncated_to_100_chars(self):
        line = "Bachelor of Science " + "x" * 200
        assert extract_education(line) == line[:100]


class TestExtractFacts:
    def test_full_resume(self):
        facts = extract_facts(SAMPLE_RESUME)

        assert facts.text == SAMPLE_RESUME
        assert facts.email == "jane.doe@example.com"
        assert facts.phone == "+1 (555) 123-4567"
        assert facts.skills == ("React", "Python")
        assert facts.experience_years == 5
        assert facts.education.startswith("B.Tech in Computer Science")

    def test_blank_text(self):
        assert extract_facts("   ") == CandidateFacts.empty()

    def test_one_failing_heuristic_does_not_block_others(self):
        with patch("hirescreen.resume_parser.PHONE_PATTERNS", None):
            facts = extract_facts(SAMPLE_RESUME)

        assert facts.phone == ""
        assert facts.email == "jane.doe@example.com"
        assert facts.experience_years == 5


class TestParseDocument:
    def test_non_pdf_bytes(self):
        facts = parse_document(b"this is not a pdf at all", PDF_MIME_TYPE)
        assert facts == CandidateFacts.empty()
        assert facts.text == ""
        assert facts.experience_years == 0

    def test_truncated_pdf(self):
        facts = parse_document(b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog", PDF_MIME_TYPE)
        assert facts == CandidateFacts.empty()

    def test_corrupt_docx(self):
        assert parse_document(b"PK\x03\x04 broken", DOCX_MIME_TYPE) == CandidateFacts.empty()

    def test_unsupported_type(self):
        assert parse_document(b"plain text", "text/plain") == CandidateFacts.empty()

    def test_empty_bytes(self):
        assert parse_document(b"") == CandidateFacts.empty()

    def test_timeout_degrades_to_empty(self):
        def slow(data, mime_type):
            time.sleep(1)
            return SAMPLE_RESUME

        with patch("hirescreen.resume_parser.extract_text", side_effect=slow):
            assert parse_document(b"%PDF", PDF_MIME_TYPE, timeout=0.05) == CandidateFacts.empty()

    def test_hung_documents_do_not_starve_later_ones(self):
        release = threading.Event()

        def stuck_on_bad_bytes(data, mime_type):
            if data == b"hang":
                release.wait(10)
            return SAMPLE_RESUME

        try:
            with patch("hirescreen.resume_parser.extract_text", side_effect=stuck_on_bad_bytes):
                for _ in range(8):
                    assert parse_document(b"hang", timeout=0.05) == CandidateFacts.empty()
                facts = parse_document(b"%PDF-1.4 healthy", timeout=2)
        finally:
            release.set()

        assert facts.email == "jane.doe@example.com"
        assert facts.experience_years == 5

    def test_deterministic(self):
        with patch("hirescreen.resume_parser.extract_text", return_value=SAMPLE_RESUME):
            first = parse_document(b"%PDF-1.4 same bytes")
            second = parse_document(b"%PDF-1.4 same bytes")

        assert first == second
        assert first.experience_years == 5

    def test_pdf_pages_are_joined(self):
        page_one, page_two = MagicMock(), MagicMock()
        page_one.extract_text.return_value = "Jane Doe"
        page_two.extract_text.return_value = None

        with patch("hirescreen.resume_parser.pdfplumber.open") as mock_open:
            mock_open.return_value.__enter__.return_value.pages = [page_one, page_two]
            assert extract_text(b"%PDF", PDF_MIME_TYPE) == "Jane Doe\n"


def test_guess_mime_type():
    assert guess_mime_type("cv.PDF") == PDF_MIME_TYPE
    assert guess_mime_type("cv.docx") == DOCX_MIME_TYPE
    assert guess_mime_type("cv.txt") is None
