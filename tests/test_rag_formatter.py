"""Tests for the RAG context formatter."""

from conftest import make_result
from kma.src.core.rag_formatter import format_documents_for_rag


def test_empty_results_give_empty_string():
    assert format_documents_for_rag([]) == ""


def test_single_result_layout():
    text = format_documents_for_rag([make_result(0.9, filename="001_db_pool.md", title="DB Pool", section="Mitigation", content="Restart the pool.")])

    assert text == (
        "Based on the following incident response documentation:\n\n"
        "## Document 1: DB Pool\n"
        "### Mitigation\n"
        "Restart the pool.\n\n"
        "*Source: 001_db_pool.md*\n\n"
    )


def test_section_heading_omitted_when_absent():
    text = format_documents_for_rag([make_result(0.9, section=None)])
    assert "###" not in text


def test_every_result_in_input_order():
    results = [
        make_result(0.6, filename="b.md", title="Beta"),
        make_result(0.9, filename="a.md", title="Alpha"),
    ]
    text = format_documents_for_rag(results)

    assert text.index("Document 1: Beta") < text.index("*Source: b.md*") < text.index("Document 2: Alpha") < text.index("*Source: a.md*")
