import math

import pytest

from mixplan.config import ScoringConfig, SimilarityWeights
from mixplan.similarity import SimilarityScorer, find_similar


def test_same_seed_ranks_above_far_seed(make_analysis, make_embedding):
    query = make_analysis("query", embedding=make_embedding(0.0))
    near = make_analysis("near", embedding=make_embedding(0.0))
    far = make_analysis("far", embedding=make_embedding(100.0))

    results = find_similar(query, [far, near, query], limit=10)

    assert [r.track_id.content_hash for r in results] == ["near", "far"]
    assert results[0].score > results[1].score
    assert results[0].explanation
    assert results[0].explanation.startswith("similar vibe (100%)")


def test_clashing_keys_have_low_key_term(make_analysis):
    scorer = SimilarityScorer()
    result = scorer.score(make_analysis("a", key="8A"), make_analysis("b", key="11B"))
    assert result.key_match / 100 < 0.3
    assert result.key_relation == "clash"
    assert "key clash" in result.explanation


def test_key_term_is_symmetric_across_wrap(make_analysis):
    scorer = SimilarityScorer()
    a = make_analysis("a", key="1A")
    b = make_analysis("b", key="12A")
    assert scorer.score(a, b).key_match == scorer.score(b, a).key_match
    assert scorer.score(a, b).key_match == pytest.approx(85.0)


def test_tempo_similarity_curve():
    scorer = SimilarityScorer()
    assert scorer.tempo_similarity(124.0, 124.5) == 1.0
    assert math.isclose(scorer.tempo_similarity(124.0, 129.0), 0.5)
    assert scorer.tempo_similarity(124.0, 140.0) == 0.0
    assert scorer.tempo_similarity(70.0, 140.0) == 1.0
    assert scorer.tempo_similarity(0.0, 124.0) == 0.5


def test_score_breakdown_without_embeddings(make_analysis):
    scorer = SimilarityScorer()
    query = make_analysis("q", bpm=124.0, key="8A", energy=5)
    candidate = make_analysis("c", bpm=130.0, key="8B", energy=7)

    result = scorer.score(query, candidate)

    assert result.vibe_match == 0.0
    assert math.isclose(result.tempo_match, 40.0)
    assert math.isclose(result.key_match, 90.0)
    assert math.isclose(result.energy_match, 60.0)
    assert math.isclose(result.score, 0.2 * 0.4 + 0.2 * 0.9 + 0.1 * 0.6)
    assert result.bpm_delta == 6.0
    assert result.energy_delta == 2
    assert result.explanation == "no embedding; Δ+6.0 BPM; relative key; energy +2"


def test_unknown_data_is_neutral(make_analysis):
    scorer = SimilarityScorer()
    query = make_analysis("q", bpm=0.0, key=None, energy=4)
    candidate = make_analysis("c", bpm=124.0, key="8A", energy=4)

    result = scorer.score(query, candidate)

    assert result.tempo_match == 50.0
    assert result.key_match == 50.0
    assert result.bpm_delta == 0.0
    assert result.explanation == "no embedding; tempo unknown; key unknown; same energy"


def test_tempo_match_phrase(make_analysis):
    scorer = SimilarityScorer()
    result = scorer.score(make_analysis("q", bpm=126.0, energy=6), make_analysis("c", bpm=124.5, energy=5))
    assert result.explanation == "no embedding; tempo match; same key; energy -1"


def test_scores_bounded(library):
    scorer = SimilarityScorer()
    for a in library:
        for b in library:
            score = scorer.score(a, b).score
            assert math.isfinite(score)
            assert 0.0 <= score <= 1.0


def test_query_is_excluded(library):
    query = library[4]
    results = find_similar(query, library)
    assert query.content_hash not in [r.track_id.content_hash for r in results]
    assert len(results) == len(library) - 1


def test_empty_without_query_embedding(make_analysis, library):
    assert find_similar(make_analysis("q"), library) == []
    assert find_similar(make_analysis("q", embedding=b"\x00\x01\x02"), library) == []


def test_empty_without_candidates(make_analysis, make_embedding):
    query = make_analysis("q", embedding=make_embedding(1.0))
    assert find_similar(query, []) == []
    assert find_similar(query, [query]) == []


def test_limit(library):
    assert len(find_similar(library[0], library, limit=3)) == 3


@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_keeps_everything(library, limit):
    assert len(find_similar(library[0], library, limit=limit)) == len(library) - 1


def test_unparseable_key_is_reported_unknown(make_analysis):
    scorer = SimilarityScorer()
    result = scorer.score(make_analysis("q", key="8A"), make_analysis("c", key="Fm"))
    assert result.key_relation == "unparseable"
    assert result.key_match == pytest.approx(30.0)
    assert "key unknown" in result.explanation


def test_results_sorted_descending(library):
    results = find_similar(library[0], library)
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_ties_keep_input_order(make_analysis, make_embedding):
    query = make_analysis("q", embedding=make_embedding(0.5))
    candidates = [make_analysis(name, embedding=make_embedding(2.0)) for name in ("z", "a", "m")]

    results = find_similar(query, candidates)

    assert [r.track_id.content_hash for r in results] == ["z", "a", "m"]


def test_candidates_without_embedding_still_ranked(make_analysis, make_embedding):
    query = make_analysis("q", embedding=make_embedding(0.0))
    with_vec = make_analysis("v", embedding=make_embedding(0.0))
    without = make_analysis("n")

    results = find_similar(query, [without, with_vec])

    assert [r.track_id.content_hash for r in results] == ["v", "n"]
    assert results[1].vibe_match == 0.0
    assert "no embedding" in results[1].explanation


def test_min_score(make_analysis, make_embedding):
    query = make_analysis("q", embedding=make_embedding(0.0))
    candidates = [
        make_analysis("close", embedding=make_embedding(0.0)),
        make_analysis("clash", key="2B", bpm=150.0, energy=10),
    ]
    results = find_similar(query, candidates, min_score=0.5)
    assert [r.track_id.content_hash for r in results] == ["close"]


def test_custom_weights(make_analysis, make_embedding):
    config = ScoringConfig(similarity=SimilarityWeights(embedding=1.0, tempo=0.0, key=0.0, energy=0.0))
    scorer = SimilarityScorer(config)
    query = make_analysis("q", key="8A", embedding=make_embedding(0.0))
    candidate = make_analysis("c", key="2B", bpm=150.0, embedding=make_embedding(0.0))

    result = scorer.score(query, candidate)

    assert result.score == pytest.approx(1.0)


def test_find_similar_is_deterministic(library):
    first = find_similar(library[2], library)
    second = find_similar(library[2], library)
    assert [r.model_dump_json() for r in first] == [r.model_dump_json() for r in second]
