from collections import deque
from typing_extensions import *

from automaton import EPSILON, NFA
from errors import InvalidAutomatonError, UnsupportedProductionError
from logging_config import get_logger

logger = get_logger(__name__)

EPSILON_VARIANTS = {"ε", "eps", "epsilon", "EPSILON", "λ", ""}

# Production shapes of a right-linear grammar
EMPTY = "empty"  # A -> ε
TERMINAL = "terminal"  # A -> a
STEP = "step"  # A -> aB


class Rule(NamedTuple):
    left: str
    right: str

    def __str__(self):
        return f"{self.left} -> {self.right}"


class Grammar:
    """
    Regular (right-linear) grammar.

    Terminals, non-terminals and productions keep their declaration order,
    which becomes the alphabet order of every automaton built from it.
    """

    def __init__(self, name: str):
        self.name = name
        self.N: List[str] = []  # Non-terminals
        self.Sigma: List[str] = []  # Terminals
        self.P: List[Rule] = []  # Productions
        self.S: Optional[str] = None  # Start symbol
        self.EPSILON = EPSILON

    # ------------------------------------------------------------------ #
    # Basic symbol / production management
    # ------------------------------------------------------------------ #

    def add_non_terminal(self, symbol: str):
        if symbol not in self.N:
            self.N.append(symbol)

    def add_terminal(self, symbol: str):
        if symbol in EPSILON_VARIANTS or symbol in self.Sigma:
            return
        self.Sigma.append(symbol)

    def set_start_symbol(self, symbol: str):
        self.S = symbol

    def add_production(self, lhs: str, rhs: str):
        if rhs in EPSILON_VARIANTS:
            rhs = self.EPSILON
        self.P.append(Rule(lhs, rhs))

    @property
    def alphabet(self) -> Tuple[str, ...]:
        return tuple(self.Sigma)

    @property
    def variables(self) -> Tuple[str, ...]:
        return tuple(self.N)

    @property
    def start(self) -> Optional[str]:
        return self.S

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self.P)

    @property
    def final_state(self) -> str:
        """Name of the accepting state added by to_NFA, unique per grammar name."""
        return f"F_{self.name}"

    # ------------------------------------------------------------------ #
    # Introspection / pretty-printing
    # ------------------------------------------------------------------ #

    def __str__(self):
        result = f"Grammar {self.name}:\n"
        result += f"  Non-terminals: {{{', '.join(self.N)}}}\n"
        result += f"  Terminals: {{{', '.join(self.Sigma)}}}\n"
        result += f"  Start symbol: {self.S}\n"
        result += "  Productions:\n"

        prod_dict: Dict[str, List[str]] = {}
        for lhs, rhs in self.P:
            prod_dict.setdefault(lhs, []).append(rhs)

        for lhs, bodies in prod_dict.items():
            result += f"    {lhs} -> {' | '.join(bodies)}\n"

        return result

    def __repr__(self):
        return f"Grammar({self.name!r}, start={self.S!r}, rules={len(self.P)})"

    # ------------------------------------------------------------------ #
    # Right-linear productions
    # ------------------------------------------------------------------ #

    def classify(self, rule: Rule) -> Tuple[str, Optional[str], Optional[str]]:
        """
        Return (shape, terminal, next non-terminal) for a production.

        Raises UnsupportedProductionError for anything that is not
        A -> ε, A -> a or A -> aB with `a` a declared terminal.
        """
        lhs, rhs = rule

        if rhs == self.EPSILON:
            return EMPTY, None, None

        if len(rhs) == 1:
            if rhs not in self.Sigma:
                raise UnsupportedProductionError(lhs, rhs, f"'{rhs}' is not a terminal")
            return TERMINAL, rhs, None

        if len(rhs) == 2:
            a, B = rhs
            if a not in self.Sigma:
                raise UnsupportedProductionError(lhs, rhs, f"'{a}' is not a terminal")
            if B in self.Sigma:
                raise UnsupportedProductionError(
                    lhs, rhs, f"'{B}' is a terminal, expected a non-terminal"
                )
            return STEP, a, B

        raise UnsupportedProductionError(
            lhs, rhs, "expected ε, a terminal, or a terminal followed by a non-terminal"
        )

    def to_NFA(self) -> NFA:
        """Convert to an NFA accepting exactly the words this grammar generates."""
        if self.S is None:
            raise InvalidAutomatonError(f"Grammar {self.name} has no start symbol")

        nfa = NFA()
        for symbol in self.Sigma:
            nfa.add_symbol(symbol)
        nfa.set_start_state(self.S)

        final = self.final_state
        nfa.add_final_state(final)

        for rule in self.P:
            shape, a, B = self.classify(rule)
            if shape == EMPTY:
                nfa.add_transition(rule.left, EPSILON, final)
            elif shape == TERMINAL:
                nfa.add_transition(rule.left, a, final)
            else:
                nfa.add_transition(rule.left, a, B)

        logger.debug(
            "Grammar %s: %d productions -> NFA with %d states",
            self.name,
            len(self.P),
            len(nfa.states),
        )
        return nfa

    def derive(self, max_length: int) -> Set[str]:
        """All terminal words of length <= max_length derivable from the start symbol."""
        if self.S is None:
            return set()

        by_lhs: Dict[str, List[Tuple[str, Optional[str], Optional[str]]]] = {}
        for rule in self.P:
            by_lhs.setdefault(rule.left, []).append(self.classify(rule))

        words: Set[str] = set()
        # Sentential forms of a right-linear grammar are (terminal prefix, non-terminal)
        start = ("", self.S)
        seen = {start}
        queue = deque([start])

        while queue:
            prefix, A = queue.popleft()
            for shape, a, B in by_lhs.get(A, []):
                if shape == EMPTY:
                    words.add(prefix)
                elif len(prefix) + 1 > max_length:
                    continue
                elif shape == TERMINAL:
                    words.add(prefix + a)
                else:
                    form = (prefix + a, B)
                    if form not in seen:
                        seen.add(form)
                        queue.append(form)

        return words
