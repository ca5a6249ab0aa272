"""
Pytest fixtures for the grammar -> DFA tests.
"""

import logging
from itertools import product

import pytest

from grammar import Grammar
from logging_config import LOGGER_NAMESPACE


def build_grammar(name, alphabet, variables, start, rules):
    g = Grammar(name)
    for symbol in alphabet:
        g.add_terminal(symbol)
    for symbol in variables:
        g.add_non_terminal(symbol)
    g.set_start_symbol(start)
    for lhs, rhs in rules:
        g.add_production(lhs, rhs)
    return g


@pytest.fixture(autouse=True)
def reset_logging():
    """main() reconfigures logging; put the package logger back afterwards."""
    yield
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_grammar():
    return build_grammar


@pytest.fixture
def all_words():
    """All words over an alphabet up to a maximum length, as strings."""

    def words(alphabet, max_length):
        result = []
        for n in range(max_length + 1):
            result.extend("".join(w) for w in product(alphabet, repeat=n))
        return result

    return words


@pytest.fixture
def single_a_grammar():
    """G1 over {a} with S -> a."""
    return build_grammar("G1", ["a"], ["S"], "S", [("S", "a")])


@pytest.fixture
def a_star_b_grammar():
    """a*b over {a, b}."""
    return build_grammar("G1", ["a", "b"], ["S"], "S", [("S", "aS"), ("S", "b")])


@pytest.fixture
def b_star_a_grammar():
    """b*a over {a, b}."""
    return build_grammar("G2", ["a", "b"], ["S"], "S", [("S", "bS"), ("S", "a")])


@pytest.fixture
def nondeterministic_grammar():
    """Words over {a, b} that end in ab."""
    return build_grammar(
        "G3",
        ["a", "b"],
        ["S", "A", "B"],
        "S",
        [("S", "aS"), ("S", "bS"), ("S", "aA"), ("A", "bB"), ("B", "ε")],
    )


@pytest.fixture
def sample_input():
    return """1:
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
# Operation

2:
G1:
# Alphabet
a b
# Variables
S
# Start
S
# Rules
S -> a
========
G2:
# Alphabet
a b
# Variables
S
# Start
S
# Rules
S -> b
========
# Operation
Intersection

3:
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
# Operation
Complement
"""
