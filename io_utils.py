import json
import re
from typing_extensions import *

from automaton import DFA
from grammar import Grammar
from logging_config import get_logger
from pipeline import CaseResult, TestCase

logger = get_logger(__name__)

CASE_PATTERN = re.compile(r"^(\d+):$")
GRAMMAR_PATTERN = re.compile(r"^(G\S*):$")
ARROW_PATTERN = re.compile(r"\s*(?:->|→)\s*")
GRAMMAR_END = "========"

SECTIONS = {
    "# alphabet": "alphabet",
    "# variables": "variables",
    "# start": "start",
    "# rules": "rules",
    "# operation": "operation",
}


def _section_for(line: str) -> Optional[str]:
    lowered = line.lower()
    for prefix, section in SECTIONS.items():
        if lowered.startswith(prefix):
            return section
    return None


def parse_test_cases(content: str) -> List[TestCase]:
    """
    Parse the test-case format:

        1:
        G1:
        # Alphabet
        a b
        # Variables
        S A
        # Start
        S
        # Rules
        S -> aA
        A -> b | ε
        ========
        # Operation
        Union
    """
    cases: List[TestCase] = []
    case: Optional[TestCase] = None
    grammar: Optional[Grammar] = None
    section: Optional[str] = None

    for lineno, raw in enumerate(content.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        match = CASE_PATTERN.match(line)
        if match:
            case = TestCase(int(match.group(1)))
            cases.append(case)
            grammar, section = None, None
            continue

        match = GRAMMAR_PATTERN.match(line)
        if match:
            grammar = Grammar(match.group(1))
            section = None
            if case is None:
                logger.warning("Line %d: grammar %s outside a test case, skipped", lineno, grammar.name)
            else:
                case.add_grammar(grammar)
            continue

        if line == GRAMMAR_END:
            grammar, section = None, None
            continue

        if line.startswith("#"):
            section = _section_for(line)
            continue

        if section == "operation":
            if case is None:
                logger.warning("Line %d: operation outside a test case, skipped", lineno)
            elif case.operation is None:
                case.operation = line
            continue

        if grammar is None and case is not None and case.operation is None:
            # a bare line between grammars names the operation
            case.operation = line
            continue

        if grammar is None or section is None:
            logger.warning("Line %d: unexpected line '%s', skipped", lineno, line)
            continue

        if section == "alphabet":
            for symbol in line.split():
                grammar.add_terminal(symbol)
        elif section == "variables":
            for symbol in line.split():
                grammar.add_non_terminal(symbol)
        elif section == "start":
            grammar.set_start_symbol(line)
        elif section == "rules":
            parts = ARROW_PATTERN.split(line)
            if len(parts) != 2 or not parts[0]:
                logger.warning("Line %d: invalid rule '%s', skipped", lineno, line)
                continue
            lhs, rhs_alternatives = parts
            for rhs in rhs_alternatives.split("|"):
                grammar.add_production(lhs, rhs.strip())

    return cases


def load_test_cases(filename: str) -> List[TestCase]:
    with open(filename, "r", encoding="utf-8") as f:
        content = f.read()
    return parse_test_cases(content)


def load_rename_maps(filename: str) -> Dict[int, Dict[str, str]]:
    """Load {"<case id>": {"old": "new", ...}} overrides from a JSON file."""
    with open(filename, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict) or not all(isinstance(m, dict) for m in raw.values()):
        raise ValueError(f"{filename}: expected a JSON object of rename maps keyed by test case id")

    return {
        int(case_id): {str(old): str(new) for old, new in mapping.items()}
        for case_id, mapping in raw.items()
    }


def format_dfa(case_id: int, dfa: DFA) -> str:
    lines = [f"{case_id}:"]

    lines.append("# States")
    lines.append(" ".join(dfa.ordered_states()))
    lines.append("")

    lines.append("# Alphabet")
    lines.append(" ".join(dfa.alphabet))
    lines.append("")

    lines.append("# Start State")
    lines.append(str(dfa.start_state))
    lines.append("")

    lines.append("# Final States")
    lines.append(" ".join(sorted(dfa.accepting_states)))
    lines.append("")

    lines.append("# Transitions")
    for src, symbol, tgt in dfa.transition_triples():
        lines.append(f"{src} {symbol} {tgt}")

    return "\n".join(lines) + "\n\n"


def format_result(result: CaseResult) -> str:
    if result.ok:
        return format_dfa(result.case_id, result.dfa)
    return f"{result.case_id}:\n# Error\n{type(result.error).__name__}: {result.error}\n\n"


def format_report(results: Iterable[CaseResult]) -> str:
    return "".join(format_result(result) for result in results)
