from dataclasses import dataclass, field
from typing_extensions import *

from automaton import DFA
from errors import AutomatonError, GrammarCountError, UnknownOperationError
from grammar import Grammar
from logging_config import get_logger

logger = get_logger(__name__)

COMPLEMENT = "complement"
UNION = "union"
INTERSECTION = "intersection"
OPERATIONS = (COMPLEMENT, UNION, INTERSECTION)


@dataclass
class TestCase:
    """One block of the input file: grammars plus the operation to apply."""

    __test__ = False  # not a pytest class

    id: int
    grammars: List[Grammar] = field(default_factory=list)
    operation: Optional[str] = None

    def add_grammar(self, grammar: Grammar):
        self.grammars.append(grammar)


@dataclass
class CaseResult:
    case_id: int
    dfa: Optional[DFA] = None
    error: Optional[AutomatonError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_dfa(grammar: Grammar) -> DFA:
    return grammar.to_NFA().to_DFA()


def normalize_operation(operation: Optional[str]) -> str:
    return (operation or "").strip().lower()


def apply_operation(dfas: Sequence[DFA], operation: Optional[str]) -> DFA:
    """
    Combine the DFAs of a test case.

    complement uses the first DFA; union and intersection complete the
    first two before building the product. No operation returns the first
    DFA unchanged.
    """
    op = normalize_operation(operation)

    if op and op not in OPERATIONS:
        raise UnknownOperationError(operation)

    required = 2 if op in (UNION, INTERSECTION) else 1
    if len(dfas) < required:
        raise GrammarCountError(op or "pass-through", required, len(dfas))

    if op == COMPLEMENT:
        return dfas[0].complement()
    if op == UNION:
        return dfas[0].complete().union(dfas[1].complete())
    if op == INTERSECTION:
        return dfas[0].complete().intersection(dfas[1].complete())
    return dfas[0]


def run_test_case(
    case: TestCase, rename_map: Optional[Mapping[str, str]] = None
) -> CaseResult:
    """Build, combine and canonicalize one test case; errors stay inside the result."""
    try:
        dfas = [build_dfa(grammar) for grammar in case.grammars]
        result = apply_operation(dfas, case.operation)

        result.trim()
        if rename_map:
            result.rename_with(rename_map)
        else:
            result.rename_readable()
    except AutomatonError as e:
        logger.warning("Test case %s failed: %s", case.id, e)
        return CaseResult(case.id, error=e)

    logger.info(
        "Test case %s: %s -> %d states, %d final",
        case.id,
        normalize_operation(case.operation) or "pass-through",
        len(result.states),
        len(result.accepting_states),
    )
    return CaseResult(case.id, dfa=result)


def run_batch(
    cases: Iterable[TestCase],
    rename_maps: Optional[Mapping[int, Mapping[str, str]]] = None,
) -> List[CaseResult]:
    rename_maps = rename_maps or {}
    return [run_test_case(case, rename_maps.get(case.id)) for case in cases]
