import string
from collections import defaultdict, deque
from dataclasses import dataclass, field
from itertools import count
from typing_extensions import *

from graphviz import Digraph

from errors import (
    AlphabetMismatchError,
    InvalidAutomatonError,
    NotCompleteError,
)
from logging_config import get_logger

logger = get_logger(__name__)

StateId = str

EPSILON = "ε"
DEAD_STATE = "DEAD"
START_NAME = "S"
PAIR_SEPARATOR = "_"
FALLBACK_SEPARATORS = "|#~:+^"


def readable_names(reserved: str = START_NAME) -> Iterator[str]:
    """Yield A, B, ..., Z, then A1, ..., Z1, A2, ..., never using the reserved letter."""
    for suffix in count():
        for letter in string.ascii_uppercase:
            if letter == reserved:
                continue
            yield letter if suffix == 0 else f"{letter}{suffix}"


def _ordered_alphabet(symbols: Iterable[str]) -> Tuple[str, ...]:
    alphabet = tuple(dict.fromkeys(symbols))
    if EPSILON in alphabet:
        raise InvalidAutomatonError(f"'{EPSILON}' cannot be an alphabet symbol")
    return alphabet


def _pair_separator(left: Iterable[StateId], right: Iterable[StateId]) -> str:
    """Pick a separator under which (q1, q2) -> q1 + sep + q2 is injective."""
    left, right = list(left), list(right)
    if len({f"{a}{PAIR_SEPARATOR}{b}" for a in left for b in right}) == len(left) * len(right):
        return PAIR_SEPARATOR

    # A character absent from every label splits each joined name exactly once.
    used = set("".join(left) + "".join(right))
    for candidate in FALLBACK_SEPARATORS:
        if candidate not in used:
            return candidate
    for code in count(0x2500):
        if chr(code) not in used:
            return chr(code)


@dataclass
class Automaton:
    """
    Fields shared by the NFA and DFA representations.

    States are string labels. The alphabet is kept as a tuple so that its
    declaration order survives every transformation; membership checks
    treat it as a set.
    """

    states: FrozenSet[StateId] = field(default_factory=frozenset)
    alphabet: Tuple[str, ...] = ()
    start_state: Optional[StateId] = None
    accepting_states: FrozenSet[StateId] = field(default_factory=frozenset)

    kind = "Automaton"

    def __post_init__(self):
        self.states = frozenset(self.states)
        self.alphabet = _ordered_alphabet(self.alphabet)
        self.accepting_states = frozenset(self.accepting_states)
        self._validate()

    def _validate(self):
        if self.start_state is not None and self.start_state not in self.states:
            raise InvalidAutomatonError(
                f"Start state {self.start_state} is not one of the states"
            )

        stray = self.accepting_states - self.states
        if stray:
            raise InvalidAutomatonError(
                f"Accepting states {sorted(stray)} are not states of the {self.kind}"
            )

        for src, symbol, tgt in self.transition_relation:
            if src not in self.states or tgt not in self.states:
                raise InvalidAutomatonError(
                    f"Transition {src} -{symbol}-> {tgt} references an unknown state"
                )
            if symbol not in self.alphabet and not self._allows_symbol(symbol):
                raise InvalidAutomatonError(
                    f"Transition {src} -{symbol}-> {tgt} uses a symbol outside the alphabet"
                )

    def _allows_symbol(self, symbol: str) -> bool:
        return False

    @property
    def transition_relation(self) -> Set[Tuple[StateId, str, StateId]]:
        return set()

    # -------------------------------------------------------------------------
    # Visualization
    # -------------------------------------------------------------------------

    def _state_label(self, state) -> str:
        """Generate display label for state."""
        if isinstance(state, frozenset):
            if not state:
                return "∅"
            sorted_labels = sorted(self._state_label(s) for s in state)
            return "{" + ",".join(sorted_labels) + "}"
        return str(state)

    def _get_state_id(self, state, state_to_id: dict) -> str:
        """Get or create a clean ID for a state."""
        if state not in state_to_id:
            state_to_id[state] = f"q{len(state_to_id)}"
        return state_to_id[state]

    def to_graphviz(self, filename: Optional[str] = None, view: bool = False) -> Digraph:
        """Build a Graphviz diagram; render it to PNG only when a filename is given."""
        dot = Digraph(
            name=self.kind,
            format="png",
            graph_attr={
                "rankdir": "LR",
                "splines": "true",
                "nodesep": "0.8",
                "ranksep": "1.2",
                "label": self.kind,
                "labelloc": "t",
                "fontsize": "14",
                "fontname": "Arial",
                "bgcolor": "white",
                "pad": "0.5",
                "dpi": "300",
            },
            node_attr={
                "shape": "circle",
                "fontsize": "14",
                "fontname": "Arial",
                "style": "filled",
                "fillcolor": "lightblue",
                "color": "black",
                "penwidth": "2",
            },
            edge_attr={
                "fontsize": "12",
                "fontname": "Arial",
                "arrowsize": "0.8",
                "penwidth": "1.5",
                "color": "black",
            },
        )

        state_to_id: Dict[Any, str] = {}

        dot.node("__start__", shape="point", width="0.01", style="invis")

        for state in sorted(self.states):
            label = self._state_label(state)
            node_id = self._get_state_id(state, state_to_id)
            if state in self.accepting_states:
                dot.node(
                    node_id,
                    label=label,
                    shape="doublecircle",
                    fillcolor="lightgreen",
                    peripheries="2",
                )
            else:
                dot.node(node_id, label=label)

        if self.start_state is not None:
            start_id = self._get_state_id(self.start_state, state_to_id)
            dot.edge("__start__", start_id, penwidth="2")

        transitions = defaultdict(list)
        for src, sym, tgt in sorted(self.transition_relation):
            transitions[(src, tgt)].append(sym)

        for (src, tgt), symbols in transitions.items():
            label = ", ".join(symbols)
            src_id = self._get_state_id(src, state_to_id)
            tgt_id = self._get_state_id(tgt, state_to_id)

            if src == tgt:
                dot.edge(src_id, tgt_id, label=label, headport="n", tailport="n")
            else:
                dot.edge(src_id, tgt_id, label=label)

        if filename:
            dot.render(filename, view=view, cleanup=True)
        return dot


@dataclass
class NFA(Automaton):
    """
    Nondeterministic automaton with ε-moves.

    transitions: state -> symbol (or EPSILON) -> set of target states.
    """

    transitions: Dict[StateId, Dict[str, FrozenSet[StateId]]] = field(default_factory=dict)

    kind = "NFA"

    def __post_init__(self):
        self.transitions = {
            src: {sym: frozenset(targets) for sym, targets in row.items()}
            for src, row in self.transitions.items()
        }
        super().__post_init__()

    def _allows_symbol(self, symbol: str) -> bool:
        return symbol == EPSILON

    @property
    def transition_relation(self) -> Set[Tuple[StateId, str, StateId]]:
        return {
            (src, sym, tgt)
            for src, row in self.transitions.items()
            for sym, targets in row.items()
            for tgt in targets
        }

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def add_state(self, state: StateId):
        self.states = self.states | {state}

    def set_start_state(self, state: StateId):
        self.start_state = state
        self.add_state(state)

    def add_final_state(self, state: StateId):
        self.accepting_states = self.accepting_states | {state}
        self.add_state(state)

    def add_symbol(self, symbol: str):
        self.alphabet = _ordered_alphabet(self.alphabet + (symbol,))

    def add_transition(self, src: StateId, symbol: str, tgt: StateId):
        """Add src -symbol-> tgt; both endpoints become states."""
        if symbol != EPSILON and symbol not in self.alphabet:
            raise InvalidAutomatonError(f"Symbol {symbol} is not in the alphabet")
        self.add_state(src)
        self.add_state(tgt)
        row = self.transitions.setdefault(src, {})
        row[symbol] = row.get(symbol, frozenset()) | {tgt}

    # -------------------------------------------------------------------------
    # Subset construction
    # -------------------------------------------------------------------------

    def _targets(self, state: StateId, symbol: str) -> FrozenSet[StateId]:
        return self.transitions.get(state, {}).get(symbol, frozenset())

    def epsilon_closure(self, states: Iterable[StateId]) -> FrozenSet[StateId]:
        closure = set(states)
        stack = list(closure)
        while stack:
            s = stack.pop()
            for next_state in self._targets(s, EPSILON):
                if next_state not in closure:
                    closure.add(next_state)
                    stack.append(next_state)
        return frozenset(closure)

    def move(self, states: Iterable[StateId], symbol: str) -> FrozenSet[StateId]:
        """ε-closure of every state reachable from `states` on `symbol`."""
        targets = set()
        for q in states:
            targets.update(self._targets(q, symbol))
        return self.epsilon_closure(targets)

    def accepts(self, word: Iterable[str]) -> bool:
        if self.start_state is None:
            return False
        current = self.epsilon_closure({self.start_state})
        for symbol in word:
            current = self.move(current, symbol)
            if not current:
                return False
        return bool(current & self.accepting_states)

    def to_DFA(self) -> "DFA":
        """Convert to an equivalent (possibly partial) DFA by subset construction."""
        if self.start_state is None:
            raise InvalidAutomatonError("Cannot determinize an NFA without a start state")

        names: Dict[FrozenSet[StateId], StateId] = {}
        taken: Set[StateId] = set()

        def name_for(subset: FrozenSet[StateId]) -> StateId:
            name = "".join(sorted(subset))
            if name in taken:
                # e.g. {"AB"} and {"A", "B"} both concatenate to "AB"
                name = self._state_label(subset)
            names[subset] = name
            taken.add(name)
            return name

        new_start = self.epsilon_closure({self.start_state})
        name_for(new_start)

        new_relation: Dict[StateId, Dict[str, StateId]] = {}
        queue = deque([new_start])

        while queue:
            S = queue.popleft()

            for a in self.alphabet:
                target = self.move(S, a)
                if not target:
                    continue

                if target not in names:
                    name_for(target)
                    queue.append(target)

                new_relation.setdefault(names[S], {})[a] = names[target]

        accepting = frozenset(
            name for subset, name in names.items() if subset & self.accepting_states
        )

        logger.debug(
            "Determinized NFA with %d states into DFA with %d states",
            len(self.states),
            len(names),
        )

        return DFA(
            states=frozenset(names.values()),
            alphabet=self.alphabet,
            start_state=names[new_start],
            accepting_states=accepting,
            transitions=new_relation,
        )


@dataclass
class DFA(Automaton):
    """
    Deterministic automaton, total or partial.

    transitions: state -> symbol -> target state. Missing pairs mean the
    word is rejected; complete() makes them explicit.
    """

    transitions: Dict[StateId, Dict[str, StateId]] = field(default_factory=dict)

    kind = "DFA"

    def __post_init__(self):
        self.transitions = {src: dict(row) for src, row in self.transitions.items()}
        super().__post_init__()

    @property
    def transition_relation(self) -> Set[Tuple[StateId, str, StateId]]:
        return {
            (src, sym, tgt)
            for src, row in self.transitions.items()
            for sym, tgt in row.items()
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def next_state(self, state: StateId, symbol: str) -> Optional[StateId]:
        return self.transitions.get(state, {}).get(symbol)

    def accepts(self, word: Iterable[str]) -> bool:
        state = self.start_state
        for symbol in word:
            state = self.next_state(state, symbol)
            if state is None:
                return False
        return state in self.accepting_states

    def missing_transitions(self) -> List[Tuple[StateId, str]]:
        return [
            (state, symbol)
            for state in sorted(self.states)
            for symbol in self.alphabet
            if self.next_state(state, symbol) is None
        ]

    def is_complete(self) -> bool:
        return not self.missing_transitions()

    def reachable_states(self) -> FrozenSet[StateId]:
        if self.start_state is None:
            return frozenset()

        reachable = {self.start_state}
        queue = deque([self.start_state])
        while queue:
            current = queue.popleft()
            for target in self.transitions.get(current, {}).values():
                if target not in reachable:
                    reachable.add(target)
                    queue.append(target)
        return frozenset(reachable)

    def ordered_states(self) -> List[StateId]:
        """Sorted states with the start state first."""
        rest = sorted(self.states - {self.start_state})
        return [self.start_state] + rest if self.start_state is not None else rest

    def transition_triples(self) -> List[Tuple[StateId, str, StateId]]:
        """(from, symbol, to) in state-list order, then alphabet order."""
        return [
            (state, symbol, self.transitions[state][symbol])
            for state in self.ordered_states()
            for symbol in self.alphabet
            if symbol in self.transitions.get(state, {})
        ]

    # -------------------------------------------------------------------------
    # Structural operations (return new DFAs)
    # -------------------------------------------------------------------------

    def _is_sink(self, state: StateId) -> bool:
        return state not in self.accepting_states and all(
            self.next_state(state, symbol) == state for symbol in self.alphabet
        )

    def _sink_name(self) -> StateId:
        name = DEAD_STATE
        for n in count(1):
            if name not in self.states or self._is_sink(name):
                return name
            name = f"{DEAD_STATE}{n}"

    def complete(self) -> "DFA":
        """Total copy of this DFA: missing transitions go to a dead state."""
        sink = self._sink_name()
        states = self.states | {sink}

        new_relation = {}
        for state in sorted(states):
            row = self.transitions.get(state, {})
            new_relation[state] = {symbol: row.get(symbol, sink) for symbol in self.alphabet}
        new_relation[sink] = {symbol: sink for symbol in self.alphabet}

        return DFA(
            states=states,
            alphabet=self.alphabet,
            start_state=self.start_state,
            accepting_states=self.accepting_states,
            transitions=new_relation,
        )

    def complement(self) -> "DFA":
        """Compute complement over the completed transition function."""
        completed = self.complete()

        return DFA(
            states=completed.states,
            alphabet=completed.alphabet,
            start_state=completed.start_state,
            accepting_states=completed.states - completed.accepting_states,
            transitions=completed.transitions,
        )

    def _product(
        self, other: "DFA", operation: str, is_final: Callable[[bool, bool], bool]
    ) -> "DFA":
        if set(self.alphabet) != set(other.alphabet):
            raise AlphabetMismatchError(self.alphabet, other.alphabet, operation)

        for dfa in (self, other):
            missing = dfa.missing_transitions()
            if missing:
                state, symbol = missing[0]
                raise NotCompleteError(state, symbol, operation)

        separator = _pair_separator(self.states, other.states)

        def pair(q1: StateId, q2: StateId) -> StateId:
            return f"{q1}{separator}{q2}"

        new_states = set()
        accepting = set()
        new_relation = {}
        for q1 in sorted(self.states):
            for q2 in sorted(other.states):
                src = pair(q1, q2)
                new_states.add(src)
                if is_final(q1 in self.accepting_states, q2 in other.accepting_states):
                    accepting.add(src)
                new_relation[src] = {
                    symbol: pair(self.transitions[q1][symbol], other.transitions[q2][symbol])
                    for symbol in self.alphabet
                }

        logger.debug(
            "%s of %d x %d states -> %d product states",
            operation,
            len(self.states),
            len(other.states),
            len(new_states),
        )

        return DFA(
            states=frozenset(new_states),
            alphabet=self.alphabet,
            start_state=pair(self.start_state, other.start_state),
            accepting_states=frozenset(accepting),
            transitions=new_relation,
        )

    def union(self, other: "DFA") -> "DFA":
        """Product construction; final where either component is final. Both DFAs must be complete."""
        return self._product(other, "union", lambda a, b: a or b)

    def intersection(self, other: "DFA") -> "DFA":
        """Product construction; final where both components are final. Both DFAs must be complete."""
        return self._product(other, "intersection", lambda a, b: a and b)

    # -------------------------------------------------------------------------
    # Canonicalization (in place)
    # -------------------------------------------------------------------------

    def _replace_with(self, other: "DFA"):
        self.states, self.start_state, self.accepting_states, self.transitions = (
            other.states,
            other.start_state,
            other.accepting_states,
            other.transitions,
        )

    def trim(self) -> "DFA":
        """Drop every state not reachable from the start state."""
        reachable = self.reachable_states()
        dropped = len(self.states) - len(reachable)

        self._replace_with(
            DFA(
                states=reachable,
                alphabet=self.alphabet,
                start_state=self.start_state,
                accepting_states=self.accepting_states & reachable,
                transitions={
                    src: row for src, row in self.transitions.items() if src in reachable
                },
            )
        )
        if dropped:
            logger.debug("Trimmed %d unreachable state(s)", dropped)
        return self

    def _apply_rename(self, name_map: Mapping[StateId, StateId]):
        new_relation: Dict[StateId, Dict[str, StateId]] = {}
        for src in sorted(self.transitions):
            row = new_relation.setdefault(name_map[src], {})
            for symbol, tgt in self.transitions[src].items():
                row[symbol] = name_map[tgt]

        self._replace_with(
            DFA(
                states=frozenset(name_map[s] for s in self.states),
                alphabet=self.alphabet,
                start_state=(
                    name_map[self.start_state] if self.start_state is not None else None
                ),
                accepting_states=frozenset(name_map[s] for s in self.accepting_states),
                transitions=new_relation,
            )
        )

    def rename_readable(self) -> "DFA":
        """Rename the start state to S and the others to A, B, C, ... in sorted order."""
        names = readable_names()
        name_map = {}
        if self.start_state is not None:
            name_map[self.start_state] = START_NAME
        for state in sorted(self.states):
            if state != self.start_state:
                name_map[state] = next(names)

        self._apply_rename(name_map)
        return self

    def rename_with(self, custom_names: Mapping[StateId, StateId]) -> "DFA":
        """Rename states through a partial map; unmapped states keep their label."""
        self._apply_rename({s: custom_names.get(s, s) for s in self.states})
        return self
