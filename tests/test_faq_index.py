"""
Tests for the FTS5 full-text index
"""
from types import SimpleNamespace

import pytest

from helpdesk.errors import IndexOpenError
from helpdesk.services.faq_index import FAQIndex, build_match_query


def entry(faq_id, question, answer):
    return SimpleNamespace(id=faq_id, question=question, answer=answer)


class TestBuildMatchQuery:
    """Tests for build_match_query()"""

    def test_words_are_quoted_and_ored(self):
        assert build_match_query("VPN setup issues") == '"vpn" OR "setup" OR "issues"'

    def test_punctuation_and_stop_words_are_dropped(self):
        assert build_match_query("How to configure VPN?") == '"configure" OR "vpn"'

    def test_repeated_words_once(self):
        assert build_match_query("vpn VPN") == '"vpn"'

    def test_diacritics_folded(self):
        assert build_match_query("Résumé café") == '"resume" OR "cafe"'

    def test_no_words(self):
        assert build_match_query("?!") == ""
        assert build_match_query("") == ""
        assert build_match_query("how is it?") == ""


class TestOpenOrCreate:
    """Tests for the create-or-open policy"""

    def test_creates_and_indexes_entries(self, tmp_path, sample_faqs):
        index = FAQIndex.open_or_create(tmp_path / "idx.db", sample_faqs)
        try:
            assert index.count() == len(sample_faqs)
        finally:
            index.close()

    def test_existing_index_is_opened_not_refreshed(self, tmp_path):
        path = tmp_path / "idx.db"
        first = FAQIndex.open_or_create(path, [entry(1, "How to configure VPN?", "Open settings")])
        first.close()

        reopened = FAQIndex.open_or_create(path, [entry(2, "Printer jam", "Open the tray")])
        try:
            assert reopened.count() == 1
            assert reopened.search("printer") == []
            assert [h.doc_id for h in reopened.search("VPN")] == ["1"]
        finally:
            reopened.close()

    def test_unusable_file_raises(self, tmp_path):
        path = tmp_path / "idx.db"
        path.write_bytes(b"this is not a sqlite database")

        with pytest.raises(IndexOpenError):
            FAQIndex.open_or_create(path, [])


class TestSearch:
    """Tests for FAQIndex.search()"""

    def test_top_hit_is_relevant_entry(self, faq_index, vpn_faq):
        hits = faq_index.search("VPN setup issues")

        assert len(hits) == 1
        assert hits[0].doc_id == str(vpn_faq.id)
        assert hits[0].score > 0.3

    def test_matches_answer_text(self, faq_index, sample_faqs):
        hits = faq_index.search("paper tray")
        assert hits[0].doc_id == str(sample_faqs[1].id)

    def test_hits_ranked_best_first(self, faq_index):
        hits = faq_index.search("printer reset password", limit=5)

        assert len(hits) >= 2
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)

    def test_no_match_returns_empty(self, faq_index):
        assert faq_index.search("quantum chromodynamics") == []

    def test_question_with_punctuation(self, faq_index, vpn_faq):
        hits = faq_index.search('"VPN" (setup) - issues?')
        assert hits[0].doc_id == str(vpn_faq.id)

    def test_single_entry_corpus_scores_above_threshold(self, tmp_path):
        index = FAQIndex.open_or_create(
            tmp_path / "one.db",
            [entry(1, "How to configure VPN?", "Open settings and choose the VPN tab.")],
        )
        try:
            hits = index.search("VPN setup issues")
        finally:
            index.close()

        assert [h.doc_id for h in hits] == ["1"]
        assert hits[0].score > 0.3

    def test_term_shared_by_most_entries_still_scores(self, tmp_path):
        index = FAQIndex.open_or_create(
            tmp_path / "vpn.db",
            [
                entry(1, "How to configure VPN?", "Open settings and choose the VPN tab."),
                entry(2, "VPN disconnects often", "Update the VPN client."),
                entry(3, "VPN is slow", "Pick a closer VPN server."),
            ],
        )
        try:
            hits = index.search("VPN configure problem", limit=3)
        finally:
            index.close()

        assert hits[0].doc_id == "1"
        assert hits[0].score == pytest.approx(2 / 3)
        assert all(h.score == pytest.approx(1 / 3) for h in hits[1:])

    def test_full_coverage_scores_one(self, faq_index, sample_faqs):
        hits = faq_index.search("printer paper tray")

        assert hits[0].doc_id == str(sample_faqs[1].id)
        assert hits[0].score == pytest.approx(1.0)


class TestIncrementalUpdates:
    """Tests for upsert/delete/rebuild"""

    def test_upsert_new_entry_is_searchable(self, faq_index):
        faq_index.upsert(entry(100, "Projector has no signal", "Press the input button."))

        hits = faq_index.search("projector")
        assert [h.doc_id for h in hits] == ["100"]

    def test_upsert_replaces_existing_document(self, faq_index, vpn_faq):
        count = faq_index.count()
        faq_index.upsert(entry(vpn_faq.id, "How to connect to the tunnel?", "Use the client app."))

        assert faq_index.count() == count
        assert faq_index.search("VPN") == []
        assert faq_index.search("tunnel")[0].doc_id == str(vpn_faq.id)

    def test_delete_removes_document(self, faq_index, vpn_faq):
        faq_index.delete(vpn_faq.id)

        assert faq_index.search("VPN") == []

    def test_delete_missing_is_noop(self, faq_index):
        count = faq_index.count()
        faq_index.delete(12345)
        assert faq_index.count() == count

    def test_rebuild_replaces_all_documents(self, faq_index):
        indexed = faq_index.rebuild([entry(7, "Monitor flickers", "Replace the cable.")])

        assert indexed == 1
        assert faq_index.count() == 1
        assert faq_index.search("VPN") == []
        assert faq_index.search("monitor")[0].doc_id == "7"
