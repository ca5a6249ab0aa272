class AutomatonError(ValueError):
    """Base class for every error raised while building or combining automata."""


class InvalidAutomatonError(AutomatonError):
    """An automaton was constructed with inconsistent states or transitions."""


class UnsupportedProductionError(AutomatonError):
    """A grammar rule is not of the form A -> aB, A -> a or A -> ε."""

    def __init__(self, lhs: str, rhs: str, reason: str = ""):
        self.lhs = lhs
        self.rhs = rhs
        message = f"Unsupported production {lhs} -> {rhs}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class AlphabetMismatchError(AutomatonError):
    def __init__(self, left, right, operation: str):
        self.left = tuple(left)
        self.right = tuple(right)
        super().__init__(
            f"DFAs must have the same alphabet for {operation}: "
            f"{{{', '.join(self.left)}}} != {{{', '.join(self.right)}}}"
        )


class NotCompleteError(AutomatonError):
    def __init__(self, state, symbol, operation: str):
        self.state = state
        self.symbol = symbol
        super().__init__(
            f"{operation} requires complete DFAs: "
            f"no transition from {state} on {symbol}"
        )


class UnknownOperationError(AutomatonError):
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unknown operation: {operation}")


class GrammarCountError(AutomatonError):
    def __init__(self, operation: str, required: int, given: int):
        self.operation = operation
        self.required = required
        self.given = given
        super().__init__(
            f"{operation} requires at least {required} grammar(s), got {given}"
        )
