from typing_extensions import *

from automaton import DFA, NFA, Automaton
from errors import AutomatonError
from grammar import Grammar
from io_utils import format_dfa, format_report, load_rename_maps, load_test_cases
from pipeline import TestCase, build_dfa, run_batch

HELP = """
Commands:
  LOADING:
    load <file>                    - Load grammars and test cases from file
    list                           - List all loaded items
    run <file> [rename_map.json]   - Run every test case in a file and print the report

  GRAMMAR OPERATIONS:
    show_grammar <name>            - Show grammar info
    words <name> <max_length>      - List words the grammar derives
    to_nfa <name> [result]         - Convert grammar to NFA
    to_dfa <name> [result]         - Convert grammar or NFA to DFA

  AUTOMATA OPERATIONS:
    show <name>                    - Show automaton info
    print <name>                   - Print DFA in report format
    graph <name>                   - Visualize automaton
    test <name> <word>             - Test if word is accepted

    TRANSFORMATIONS:
      complete <name> [result]     - Add a dead state for missing transitions
      complement <name> [result]   - Complement DFA
      trim <name>                  - Remove unreachable states (in place)
      rename <name>                - Rename states to S, A, B, ... (in place)
      rename_map <name> <old=new>... - Rename selected states (in place)

    COMBINATIONS:
      union <n1> <n2> [result]     - Union of two complete DFAs
      intersect <n1> <n2> [result] - Intersection of two complete DFAs

  GENERAL:
    delete <name>                  - Delete item
    clear                          - Clear all
    exit                           - Exit
"""


def main():
    """Simple interactive terminal for grammar and automaton operations."""
    automata: Dict[str, Automaton] = {}
    grammars: Dict[str, Grammar] = {}
    cases: Dict[int, TestCase] = {}

    def get_dfa(name: str) -> Optional[DFA]:
        if name not in automata:
            print(f"Automaton not found: {name}")
            return None
        if not isinstance(automata[name], DFA):
            print(f"{name} is an NFA; convert it with to_dfa first")
            return None
        return automata[name]

    print("Regular Grammar & DFA Terminal - Type 'help' for commands\n")

    while True:
        try:
            command = input("> ").strip()
            if not command:
                continue

            parts = command.split()
            cmd = parts[0].lower()

            # Exit
            if cmd in ["exit", "quit"]:
                break

            # Help
            elif cmd == "help":
                print(HELP)

            # Load
            elif cmd == "load":
                if len(parts) < 2:
                    print("Usage: load <filename>")
                    continue
                try:
                    loaded = load_test_cases(parts[1])
                except (OSError, ValueError) as e:
                    print(f"Error: {e}")
                    continue

                loaded_grammars = []
                for case in loaded:
                    cases[case.id] = case
                    for grammar in case.grammars:
                        key = grammar.name
                        if key in grammars:
                            key = f"{grammar.name}_{case.id}"
                        grammars[key] = grammar
                        loaded_grammars.append(key)

                if loaded:
                    print(
                        f"Loaded {len(loaded)} test cases and "
                        f"{len(loaded_grammars)} grammars: {', '.join(loaded_grammars)}"
                    )
                else:
                    print("No items loaded")

            # List
            elif cmd == "list":
                if automata or grammars or cases:
                    if grammars:
                        print("Grammars:")
                        for name, gram in sorted(grammars.items()):
                            print(
                                f"  {name}: {len(gram.N)} non-terminals, {len(gram.P)} productions"
                            )
                    if automata:
                        print("Automata:")
                        for name, aut in sorted(automata.items()):
                            print(f"  {name}: {aut.kind}, {len(aut.states)} states")
                    if cases:
                        print("Test cases:")
                        for case_id, case in sorted(cases.items()):
                            names = ", ".join(g.name for g in case.grammars)
                            print(f"  {case_id}: {case.operation or '-'} on {names}")
                else:
                    print("Nothing loaded")

            # Run a whole input file
            elif cmd == "run":
                if len(parts) < 2:
                    print("Usage: run <file> [rename_map.json]")
                    continue
                try:
                    rename_maps = load_rename_maps(parts[2]) if len(parts) > 2 else None
                    results = run_batch(load_test_cases(parts[1]), rename_maps)
                except (OSError, ValueError) as e:
                    print(f"Error: {e}")
                    continue
                print(format_report(results), end="")

            # Show grammar info
            elif cmd == "show_grammar":
                if len(parts) < 2:
                    print("Usage: show_grammar <name>")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    print(grammars[parts[1]])

            # Words derivable up to a length
            elif cmd == "words":
                if len(parts) < 3 or not parts[2].isdigit():
                    print("Usage: words <name> <max_length>")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    try:
                        words = grammars[parts[1]].derive(int(parts[2]))
                        shown = sorted(words, key=lambda w: (len(w), w))
                        print(", ".join(w or "ε" for w in shown) or "(none)")
                    except AutomatonError as e:
                        print(f"Error: {e}")

            # Convert grammar to NFA
            elif cmd == "to_nfa":
                if len(parts) < 2:
                    print("Usage: to_nfa <name> [result]")
                elif parts[1] not in grammars:
                    print(f"Grammar not found: {parts[1]}")
                else:
                    try:
                        result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_nfa"
                        automata[result_name] = grammars[parts[1]].to_NFA()
                        print(f"Created automaton: {result_name}")
                    except AutomatonError as e:
                        print(f"Error: {e}")

            # Convert grammar or NFA to DFA
            elif cmd == "to_dfa":
                if len(parts) < 2:
                    print("Usage: to_dfa <name> [result]")
                elif parts[1] not in grammars and parts[1] not in automata:
                    print(f"Not found: {parts[1]}")
                else:
                    try:
                        result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_dfa"
                        source = automata.get(parts[1])
                        if isinstance(source, DFA):
                            print(f"{parts[1]} is already a DFA")
                            continue
                        if isinstance(source, NFA):
                            automata[result_name] = source.to_DFA()
                        else:
                            automata[result_name] = build_dfa(grammars[parts[1]])
                        print(f"Created: {result_name}")
                    except AutomatonError as e:
                        print(f"Error: {e}")

            # Show automaton info
            elif cmd == "show":
                if len(parts) < 2:
                    print("Usage: show <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    aut = automata[parts[1]]
                    print(f"\n{parts[1]} ({aut.kind}):")
                    print(f"  States: {', '.join(sorted(aut.states))}")
                    print(f"  Alphabet: {', '.join(aut.alphabet)}")
                    print(f"  Start: {aut.start_state}")
                    print(f"  Accepting: {', '.join(sorted(aut.accepting_states))}")
                    print(f"  Transitions: {len(aut.transition_relation)}")
                    if isinstance(aut, DFA):
                        print(f"  Complete: {'yes' if aut.is_complete() else 'no'}")
                    print()

            # Print in report format
            elif cmd == "print":
                if len(parts) < 2:
                    print("Usage: print <name>")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        print(format_dfa(parts[1], dfa), end="")

            # Graph automaton
            elif cmd == "graph":
                if len(parts) < 2:
                    print("Usage: graph <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    try:
                        automata[parts[1]].to_graphviz(filename=parts[1], view=True)
                        print(f"Created: {parts[1]}.png")
                    except Exception as e:
                        print(f"Error: {e}")

            # Test word on automaton
            elif cmd == "test":
                if len(parts) < 3:
                    print("Usage: test <name> <word>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")
                else:
                    word = "" if parts[2] in ("ε", "eps") else parts[2]
                    result = automata[parts[1]].accepts(word)
                    print("ACCEPTED" if result else "REJECTED")

            # Complete DFA
            elif cmd == "complete":
                if len(parts) < 2:
                    print("Usage: complete <name> [result]")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_total"
                        automata[result_name] = dfa.complete()
                        print(f"Created: {result_name}")

            # Complement DFA
            elif cmd == "complement":
                if len(parts) < 2:
                    print("Usage: complement <name> [result]")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_comp"
                        automata[result_name] = dfa.complement()
                        print(f"Created: {result_name}")

            # Union / intersection of DFAs
            elif cmd in ("union", "intersect"):
                if len(parts) < 3:
                    print(f"Usage: {cmd} <n1> <n2> [result]")
                    continue
                d1, d2 = get_dfa(parts[1]), get_dfa(parts[2])
                if d1 is None or d2 is None:
                    continue
                try:
                    if cmd == "union":
                        result_name = (
                            parts[3] if len(parts) > 3 else f"{parts[1]}_union_{parts[2]}"
                        )
                        automata[result_name] = d1.union(d2)
                    else:
                        result_name = (
                            parts[3] if len(parts) > 3 else f"{parts[1]}_int_{parts[2]}"
                        )
                        automata[result_name] = d1.intersection(d2)
                    print(f"Created: {result_name}")
                except AutomatonError as e:
                    print(f"Error: {e}")

            # Trim (in place)
            elif cmd == "trim":
                if len(parts) < 2:
                    print("Usage: trim <name>")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        before = len(dfa.states)
                        dfa.trim()
                        print(f"Removed {before - len(dfa.states)} unreachable states")

            # Readable rename (in place)
            elif cmd == "rename":
                if len(parts) < 2:
                    print("Usage: rename <name>")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        dfa.rename_readable()
                        print(f"Renamed: {', '.join(dfa.ordered_states())}")

            # Custom rename (in place)
            elif cmd == "rename_map":
                if len(parts) < 3 or not all("=" in p for p in parts[2:]):
                    print("Usage: rename_map <name> <old=new> [old=new ...]")
                else:
                    dfa = get_dfa(parts[1])
                    if dfa is not None:
                        mapping = dict(p.split("=", 1) for p in parts[2:])
                        dfa.rename_with(mapping)
                        print(f"Renamed: {', '.join(dfa.ordered_states())}")

            # Delete item
            elif cmd == "delete":
                if len(parts) < 2:
                    print("Usage: delete <name>")
                else:
                    deleted = False
                    if parts[1] in automata:
                        del automata[parts[1]]
                        deleted = True
                    if parts[1] in grammars:
                        del grammars[parts[1]]
                        deleted = True
                    if deleted:
                        print(f"Deleted: {parts[1]}")
                    else:
                        print(f"Not found: {parts[1]}")

            # Clear all
            elif cmd == "clear":
                automata.clear()
                grammars.clear()
                cases.clear()
                print("Cleared all")

            else:
                print(f"Unknown command: {cmd}")

        except KeyboardInterrupt:
            print("\nUse 'exit' to quit")
        except EOFError:
            break
        except Exception as e:
            print(f"Error: {e}")

    print("Goodbye!")
