from contract_lens.domain.services.text_normalization import (
    build_extracted_text,
    normalize_page,
    split_pages,
)


def test_normalize_page_collapses_whitespace_and_keeps_paragraphs():
    raw = "Clause 1.\r\n  The   Client\tshall pay.\r\n\r\n\r\nClause 2.\x00 Notice\x07 applies."
    assert normalize_page(raw) == ["Clause 1. The Client shall pay.", "Clause 2. Notice applies."]


def test_normalize_page_applies_nfkc():
    # full-width digits and the "ﬁ" ligature fold to ASCII
    assert normalize_page("Payment within ３０ days, ﬁnal.") == ["Payment within 30 days, final."]


def test_split_pages_on_form_feed():
    assert split_pages("one\ftwo\fthree") == ["one", "two", "three"]


def test_segments_index_into_joined_text():
    extracted = build_extracted_text("d", "s", ["Alpha.\n\nBeta.", "Gamma."])
    assert extracted.text == "Alpha.\n\nBeta.\n\nGamma."
    assert extracted.page_count == 2
    for seg in extracted.segments:
        assert extracted.text[seg.start : seg.end] == seg.text
    assert [(s.page, s.paragraph) for s in extracted.segments] == [(0, 0), (0, 1), (1, 0)]
    assert extracted.page_at(extracted.text.index("Gamma")) == 1
    assert extracted.page_at(0) == 0


def test_empty_pages_produce_empty_text():
    extracted = build_extracted_text("d", "s", ["", "  "])
    assert extracted.text == ""
    assert extracted.segments == ()
    assert extracted.page_count == 2
