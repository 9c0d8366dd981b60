"""Unit tests for identifiers, author matching, book references and ranking."""

import pytest
from pydantic import ValidationError

from bookshare.domain.authors import author_matches, normalize_author_name
from bookshare.domain.exchange import (
    ResolvedBook,
    UnresolvedBook,
    dump_book_refs,
    parse_book_refs,
)
from bookshare.domain.identifiers import BOOK_ID_WIDTH, pad_book_id
from bookshare.services.recommendations import decade_of, rank_categories

# ── Identifier Tests ───────────────────────────────


@pytest.mark.parametrize("raw", ["1", "12345", "00000000012345", "98765432101234", " 42 "])
def test_pad_book_id_is_idempotent(raw: str):
    padded = pad_book_id(raw)
    assert len(padded) == BOOK_ID_WIDTH
    assert pad_book_id(padded) == padded
    assert padded.isdigit()


def test_pad_book_id_accepts_ints():
    assert pad_book_id(12345) == "00000000012345"


# ── Author Tests ───────────────────────────────────


def test_normalize_author_name():
    assert normalize_author_name("Clarke, Arthur C. (1917-2008)") == "clarke arthur c"
    assert normalize_author_name("  Lem;   Stanisław  ") == "lem stanisław"


def test_author_matches_reordered_name():
    assert author_matches("Clarke, Arthur C. (1917-2008)", "Arthur Clarke")


def test_author_matches_substring():
    assert author_matches("Tolkien, J. R. R. (1892-1973), Tolkien, Christopher", "tolkien")


def test_author_rejects_short_query_tokens():
    assert not author_matches("Lem, Stanisław (1921-2006)", "S Lem")
    # a contiguous prefix still matches as a whole
    assert author_matches("Lem, Stanisław (1921-2006)", "Lem S")
    assert not author_matches("Clarke, Arthur (1917-2008)", "C. Clarke")
    assert author_matches("Clarke, Arthur (1917-2008)", "Art Clarke")
    assert not author_matches("Lem, Stanisław", "Arthur Clarke")


def test_author_no_match_on_empty():
    assert not author_matches(None, "Lem")
    assert not author_matches("", "Lem")
    assert not author_matches("(1921-2006)", "Lem")
    assert not author_matches("Lem, Stanisław", "ab")


# ── Book Reference Tests ───────────────────────────


def test_parse_legacy_book_refs():
    refs = parse_book_refs(
        [
            "12345",
            {"id": "777", "title": "Solaris", "author": "Lem", "coverUrl": "http://c/1.jpg"},
            {"bookId": "888"},
        ]
    )
    assert refs[0] == UnresolvedBook(book_id="00000000012345")
    assert isinstance(refs[1], ResolvedBook)
    assert refs[1].book_id == "00000000000777"
    assert refs[1].cover_url == "http://c/1.jpg"
    assert refs[2] == UnresolvedBook(book_id="00000000000888")


def test_tagged_book_refs_survive_storage():
    refs = [
        ResolvedBook(book_id="00000000000001", title="Lalka", author="Prus"),
        UnresolvedBook(book_id="00000000000002"),
    ]
    stored = dump_book_refs(refs)
    assert stored[0]["kind"] == "resolved"
    assert stored[1] == {"kind": "unresolved", "book_id": "00000000000002"}
    assert parse_book_refs(stored) == refs


def test_parse_book_refs_rejects_garbage():
    assert parse_book_refs(None) == []
    with pytest.raises(ValueError):
        parse_book_refs([{"title": "No id"}])
    with pytest.raises(ValidationError):
        parse_book_refs([{"kind": "resolved", "book_id": "1"}])


# ── Ranking Tests ──────────────────────────────────


def test_rank_categories_orders_by_count_then_first_seen():
    ranked = rank_categories(["b", "a", "c", "a", "d", "b", "a", ""], limit=3)
    assert [(c.item, c.count) for c in ranked] == [("a", 3), ("b", 2), ("c", 1)]


def test_decade_of():
    assert decade_of({"publicationYear": 1968}) == "1960s"
    assert decade_of({"publicationYear": "1890"}) == "1890s"
    assert decade_of({"publicationYear": None}) is None
    assert decade_of({}) is None
