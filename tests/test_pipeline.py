import pytest

from errors import (
    AlphabetMismatchError,
    GrammarCountError,
    UnknownOperationError,
    UnsupportedProductionError,
)
from pipeline import TestCase, apply_operation, build_dfa, run_batch, run_test_case


def test_single_terminal_scenario(single_a_grammar):
    result = run_test_case(TestCase(1, [single_a_grammar]))

    assert result.ok
    dfa = result.dfa
    assert dfa.states == {"S", "A"}
    assert dfa.start_state == "S"
    assert dfa.accepting_states == {"A"}
    assert dfa.transition_triples() == [("S", "a", "A")]


def test_disjoint_intersection_has_no_final_states(make_grammar, all_words):
    g1 = make_grammar("G1", ["a", "b"], ["S"], "S", [("S", "a")])
    g2 = make_grammar("G2", ["a", "b"], ["S"], "S", [("S", "b")])

    result = run_test_case(TestCase(2, [g1, g2], "Intersection"))

    assert result.ok
    assert result.dfa.accepting_states == frozenset()
    assert not any(result.dfa.accepts(w) for w in all_words("ab", 5))
    # S_S, F_G1_DEAD, DEAD_F_G2, DEAD_DEAD
    assert len(result.dfa.states) == 4


def test_complement_scenario(single_a_grammar):
    result = run_test_case(TestCase(3, [single_a_grammar], "Complement"))
    dfa = result.dfa

    # DEAD -> A, F_G1 -> B
    assert dfa.ordered_states() == ["S", "A", "B"]
    assert dfa.accepting_states == {"S", "A"}
    assert dfa.transition_triples() == [("S", "a", "B"), ("A", "a", "A"), ("B", "a", "A")]


def test_union_scenario(a_star_b_grammar, b_star_a_grammar, all_words):
    result = run_test_case(TestCase(4, [a_star_b_grammar, b_star_a_grammar], " UNION "))
    d1, d2 = build_dfa(a_star_b_grammar), build_dfa(b_star_a_grammar)

    assert result.ok
    assert result.dfa.is_complete()
    for w in all_words("ab", 5):
        assert result.dfa.accepts(w) == (d1.accepts(w) or d2.accepts(w))


def test_missing_operation_passes_first_dfa_through(a_star_b_grammar, b_star_a_grammar):
    dfas = [build_dfa(a_star_b_grammar), build_dfa(b_star_a_grammar)]
    assert apply_operation(dfas, None) is dfas[0]
    assert apply_operation(dfas, "  ") is dfas[0]


def test_unknown_operation_is_rejected(single_a_grammar):
    with pytest.raises(UnknownOperationError):
        apply_operation([build_dfa(single_a_grammar)], "difference")


@pytest.mark.parametrize("operation", ["union", "intersection"])
def test_binary_operations_need_two_grammars(single_a_grammar, operation):
    with pytest.raises(GrammarCountError):
        apply_operation([build_dfa(single_a_grammar)], operation)


def test_no_grammars():
    with pytest.raises(GrammarCountError):
        apply_operation([], "complement")


def test_rename_map_overrides_readable_names(single_a_grammar):
    result = run_test_case(TestCase(1, [single_a_grammar]), {"S": "Q0"})
    assert result.dfa.states == {"Q0", "F_G1"}
    assert result.dfa.start_state == "Q0"


def test_errors_are_captured_per_case(make_grammar, single_a_grammar, a_star_b_grammar):
    bad = make_grammar("G9", ["a"], ["S"], "S", [("S", "aaa")])
    cases = [
        TestCase(1, [bad]),
        TestCase(2, [single_a_grammar, a_star_b_grammar], "union"),
        TestCase(3, [single_a_grammar], "shuffle"),
        TestCase(4, [single_a_grammar]),
    ]

    results = run_batch(cases)

    assert [r.case_id for r in results] == [1, 2, 3, 4]
    assert isinstance(results[0].error, UnsupportedProductionError)
    assert isinstance(results[1].error, AlphabetMismatchError)
    assert isinstance(results[2].error, UnknownOperationError)
    assert results[3].ok
    assert results[3].dfa.states == {"S", "A"}


def test_batch_uses_rename_map_for_matching_case(single_a_grammar, make_grammar):
    other = make_grammar("G1", ["a"], ["S"], "S", [("S", "a")])
    results = run_batch(
        [TestCase(1, [single_a_grammar]), TestCase(2, [other])],
        {2: {"S": "Start", "F_G1": "End"}},
    )
    assert results[0].dfa.states == {"S", "A"}
    assert results[1].dfa.states == {"Start", "End"}


def test_cases_do_not_share_state(single_a_grammar):
    first = run_test_case(TestCase(1, [single_a_grammar], "complement"))
    second = run_test_case(TestCase(2, [single_a_grammar]))
    assert first.dfa is not second.dfa
    assert second.dfa.states == {"S", "A"}
