"""
Tests for the Exam Corner service.
"""
import pytest

from studysheets.utils.drafts import ExamPaperDraft
from studysheets.utils.errors import NotFound, ValidationError
from studysheets.utils.exam_service import add_exam_paper, get_exam_paper, search_exam_papers


def _paper(subject="Data Structures", exam_type="Mid-Sem", slot="Slot B",
           url="https://files.campus.edu/papers/ds-midsem.png"):
    return ExamPaperDraft(subject=subject, exam_type=exam_type, slot=slot, paper_url=url)


class TestAddExamPaper:

    def test_adds(self, make_user):
        u = make_user()
        paper = add_exam_paper(u, _paper(subject="  Operating Systems "))
        assert paper.id is not None
        assert paper.subject == "Operating Systems"
        assert paper.uploader_id == u.id
        assert get_exam_paper(paper.id).paper_url.endswith("ds-midsem.png")

    def test_requires_url(self, make_user):
        with pytest.raises(ValidationError) as exc:
            add_exam_paper(make_user(), _paper(url=""))
        assert "paper_url" in exc.value.fields

    def test_rejects_non_http_url(self, make_user):
        with pytest.raises(ValidationError):
            add_exam_paper(make_user(), _paper(url="ftp://files.campus.edu/x.png"))

    def test_keeps_slot(self, make_user):
        paper = add_exam_paper(make_user(), _paper(slot=" Slot A2 "))
        assert get_exam_paper(paper.id).slot == "Slot A2"

    def test_requires_slot(self, make_user):
        with pytest.raises(ValidationError) as exc:
            add_exam_paper(make_user(), _paper(slot="  "))
        assert "slot" in exc.value.fields

    def test_missing_paper(self, ctx):
        with pytest.raises(NotFound):
            get_exam_paper(123)


class TestSearch:

    @pytest.fixture
    def papers(self, make_user):
        u = make_user()
        return [
            add_exam_paper(u, _paper("Data Structures", "Mid-Sem")),
            add_exam_paper(u, _paper("Operating Systems", "End-Sem")),
            add_exam_paper(u, _paper("Discrete Maths", "Mid-Sem")),
        ]

    def test_blank_query_matches_nothing(self, papers):
        assert search_exam_papers("") == []
        assert search_exam_papers("   ") == []

    def test_matches_subject_case_insensitive(self, papers):
        assert [p.subject for p in search_exam_papers("operating")] == ["Operating Systems"]

    def test_matches_exam_type_newest_first(self, papers):
        assert [p.subject for p in search_exam_papers("mid-sem")] == ["Discrete Maths", "Data Structures"]

    def test_no_match(self, papers):
        assert search_exam_papers("chemistry") == []

    def test_wildcards_are_literal(self, papers, make_user):
        add_exam_paper(make_user(), _paper("100% Revision", "End_Sem"))
        assert [p.subject for p in search_exam_papers("%")] == ["100% Revision"]
        assert [p.subject for p in search_exam_papers("_")] == ["100% Revision"]
        assert search_exam_papers("Mid_Sem") == []
