import json
import logging

import pytest

from errors import UnknownOperationError
from grammar import Rule
from io_utils import (
    format_dfa,
    format_report,
    format_result,
    load_rename_maps,
    load_test_cases,
    parse_test_cases,
)
from pipeline import CaseResult, TestCase, run_batch, run_test_case


def test_parse_sample_input(sample_input):
    cases = parse_test_cases(sample_input)

    assert [c.id for c in cases] == [1, 2, 3]
    assert [c.operation for c in cases] == [None, "Intersection", "Complement"]
    assert [len(c.grammars) for c in cases] == [1, 2, 1]

    g2 = cases[1].grammars[1]
    assert g2.name == "G2"
    assert g2.alphabet == ("a", "b")
    assert g2.variables == ("S",)
    assert g2.start == "S"
    assert g2.rules == (Rule("S", "b"),)


def test_parse_alternatives_and_epsilon():
    content = """7:
G1:
# Alphabet
a b
# Variables
S A
# Start
S
# Rules
S -> aA | ε
A → b
========
"""
    (case,) = parse_test_cases(content)
    assert case.id == 7
    assert case.operation is None
    assert case.grammars[0].rules == (Rule("S", "aA"), Rule("S", "ε"), Rule("A", "b"))


def test_operation_without_header():
    content = """1:
G1:
# Alphabet
a
# Variables
S
# Start
S
# Rules
S -> a
========
Complement
"""
    (case,) = parse_test_cases(content)
    assert case.operation == "Complement"
    assert len(case.grammars) == 1


def test_only_first_bare_line_is_the_operation(caplog):
    content = """1:
G1:
# Alphabet
a
# Start
S
# Rules
S -> a
========
Complement
Union
"""
    with caplog.at_level(logging.WARNING):
        (case,) = parse_test_cases(content)

    assert case.operation == "Complement"
    assert "unexpected line 'Union'" in caplog.text


@pytest.mark.parametrize("header", ["G-1:", "G_left:", "G1.2:"])
def test_grammar_names_with_punctuation(header):
    content = f"""1:
{header}
# Alphabet
a
# Start
S
# Rules
S -> a
========
"""
    (case,) = parse_test_cases(content)
    assert [g.name for g in case.grammars] == [header[:-1]]
    assert case.grammars[0].rules == (Rule("S", "a"),)


def test_malformed_rule_is_skipped_with_warning(caplog):
    content = """1:
G1:
# Alphabet
a
# Start
S
# Rules
S a
S -> a
========
"""
    with caplog.at_level(logging.WARNING):
        (case,) = parse_test_cases(content)

    assert case.grammars[0].rules == (Rule("S", "a"),)
    assert "invalid rule 'S a'" in caplog.text


def test_stray_lines_are_skipped(caplog):
    content = """stray
1:
G1:
# Alphabet
a
# Start
S
# Rules
S -> a
========
"""
    with caplog.at_level(logging.WARNING):
        cases = parse_test_cases(content)

    assert len(cases) == 1
    assert "unexpected line 'stray'" in caplog.text


def test_load_test_cases(tmp_path, sample_input):
    path = tmp_path / "input.txt"
    path.write_text(sample_input, encoding="utf-8")
    assert [c.id for c in load_test_cases(str(path))] == [1, 2, 3]


def test_load_rename_maps(tmp_path):
    path = tmp_path / "rename.json"
    path.write_text(json.dumps({"3": {"S_F_G2S": "S", "F_G1_DEAD": "A"}}), encoding="utf-8")
    assert load_rename_maps(str(path)) == {3: {"S_F_G2S": "S", "F_G1_DEAD": "A"}}


def test_load_rename_maps_rejects_wrong_shape(tmp_path):
    path = tmp_path / "rename.json"
    path.write_text(json.dumps({"3": ["S"]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_rename_maps(str(path))


def test_format_dfa(single_a_grammar):
    result = run_test_case(TestCase(1, [single_a_grammar]))
    assert format_dfa(1, result.dfa) == (
        "1:\n"
        "# States\nS A\n\n"
        "# Alphabet\na\n\n"
        "# Start State\nS\n\n"
        "# Final States\nA\n\n"
        "# Transitions\nS a A\n\n"
    )


def test_format_empty_final_states(sample_input):
    results = run_batch(parse_test_cases(sample_input))
    block = format_result(results[1])
    assert "# Final States\n\n" in block
    assert block.startswith("2:\n# States\nS ")


def test_format_error_result():
    result = CaseResult(5, error=UnknownOperationError("shuffle"))
    assert format_result(result) == "5:\n# Error\nUnknownOperationError: Unknown operation: shuffle\n\n"


def test_report_concatenates_blocks_in_order(sample_input):
    report = format_report(run_batch(parse_test_cases(sample_input)))
    assert report.index("1:\n") < report.index("2:\n") < report.index("3:\n")
    assert report.endswith("\n\n")
