from __future__ import annotations

from explore_state.core.query_keys import (
    clear_query_keys,
    ensure_queries,
    generate_empty_query,
    generate_key,
    get_next_ref_id_char,
    has_non_empty_query,
)


def test_generate_key_is_unique_in_a_loop() -> None:
    keys = [generate_key(i) for i in range(500)]
    assert len(set(keys)) == 500
    assert all(k.startswith("Q-") for k in keys)
    assert keys[7].endswith("-7")


def test_get_next_ref_id_char_skips_used_letters() -> None:
    assert get_next_ref_id_char([]) == "A"
    assert get_next_ref_id_char([{"refId": "A"}, {"refId": "C"}]) == "B"
    assert get_next_ref_id_char(None) == "A"


def test_get_next_ref_id_char_past_z_stays_unique() -> None:
    queries = [{"refId": chr(ord("A") + i)} for i in range(26)]
    first = get_next_ref_id_char(queries)
    assert first not in {q["refId"] for q in queries}
    second = get_next_ref_id_char(queries + [{"refId": first}])
    assert second != first


def test_generate_empty_query_has_key_and_ref_id() -> None:
    q = generate_empty_query([{"refId": "A"}])
    assert q["refId"] == "B"
    assert q["key"]


def test_ensure_queries_empty_returns_one_keyed_query() -> None:
    for empty in ([], None):
        queries = ensure_queries(empty)
        assert len(queries) == 1
        assert queries[0]["key"]
        assert queries[0]["refId"] == "A"


def test_ensure_queries_keeps_existing_ref_ids_and_fills_missing() -> None:
    queries = ensure_queries([{"expr": "a", "refId": "C"}, {"expr": "b"}, {"expr": "c", "refId": ""}])
    assert [q["refId"] for q in queries] == ["C", "A", "B"]
    assert [q["expr"] for q in queries] == ["a", "b", "c"]
    assert len({q["key"] for q in queries}) == 3


def test_ensure_queries_never_duplicates_ref_ids() -> None:
    queries = ensure_queries([{"refId": "A"}, {"refId": "A"}, {}, {"refId": "B"}])
    ref_ids = [q["refId"] for q in queries]
    assert len(set(ref_ids)) == len(ref_ids)
    assert all(ref_ids)
    assert ref_ids[0] == "A"


def test_ensure_queries_does_not_mutate_input() -> None:
    original = [{"expr": "a"}]
    ensure_queries(original)
    assert original == [{"expr": "a"}]


def test_has_non_empty_query() -> None:
    assert not has_non_empty_query([])
    assert not has_non_empty_query(None)
    assert not has_non_empty_query([{"refId": "A", "key": "Q-1"}])
    assert not has_non_empty_query([{"refId": "A", "key": "Q-1", "expr": ""}])
    assert has_non_empty_query([{"refId": "A", "key": "Q-1"}, {"refId": "B", "key": "Q-2", "expr": "up"}])


def test_clear_query_keys_strips_identity_only() -> None:
    query = {"refId": "A", "key": "Q-1", "expr": "up", "datasource": "prom"}
    assert clear_query_keys(query) == {"expr": "up", "datasource": "prom"}
    assert query["key"] == "Q-1"
