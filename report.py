"""Accuracy report: one stacked ASCII bar per category plus an overall total."""

from stats_store import StatsDocument

OVERALL_LABEL = "Overall Total"

# A full bar is 100% / BAR_SCALE characters wide.
BAR_SCALE = 2

CORRECT_CHAR = "#"
INCORRECT_CHAR = "@"

# ANSI color codes
GREEN = "\033[92m"
RED = "\033[91m"
BOLD = "\033[1m"
DIM = "\033[2m"
RESET = "\033[0m"


def accuracy(correct, incorrect):
    """
    Return (correct_pct, incorrect_pct) as whole percentages.

    Rounds half up, so 5 of 8 is 63%.  With nothing answered both are 0.
    """
    total = correct + incorrect
    if total <= 0:
        return 0, 0
    correct_pct = (200 * correct + total) // (2 * total)
    return correct_pct, 100 - correct_pct


def format_line(name, correct, incorrect, width, colors=False):
    """One report row: name, asked count, correct %, two bars, incorrect %."""
    correct_pct, incorrect_pct = accuracy(correct, incorrect)
    good = CORRECT_CHAR * (correct_pct // BAR_SCALE)
    bad = INCORRECT_CHAR * (incorrect_pct // BAR_SCALE)
    if colors:
        good = f"{GREEN}{good}{RESET}"
        bad = f"{RED}{bad}{RESET}"
    return (
        f"{name.ljust(width)} {correct + incorrect:04d} "
        f"{correct_pct:03d}% {good}{bad} {incorrect_pct:03d}%"
    )


def render(doc: StatsDocument, colors=False) -> str:
    """Render every answered category (sorted by name) and the overall total."""
    rows = []
    for name in sorted(doc.categories):
        correct, incorrect = doc.total(name)
        if correct + incorrect == 0:
            continue
        rows.append((name, correct, incorrect))

    total_correct = sum(r[1] for r in rows)
    total_incorrect = sum(r[2] for r in rows)
    width = max([len(OVERALL_LABEL)] + [len(r[0]) for r in rows])

    header = f"{'Category'.ljust(width)} Asked Right  Accuracy"
    rule = "-" * (width + 1 + 4 + 1 + 4 + 1 + 100 // BAR_SCALE + 1 + 4)
    if colors:
        header = f"{BOLD}{header}{RESET}"
        rule = f"{DIM}{rule}{RESET}"

    lines = [header, rule]
    for name, correct, incorrect in rows:
        lines.append(format_line(name, correct, incorrect, width, colors))
    lines.append(rule)
    overall = format_line(OVERALL_LABEL, total_correct, total_incorrect, width, colors)
    lines.append(f"{BOLD}{overall}{RESET}" if colors else overall)
    return "\n".join(lines)
