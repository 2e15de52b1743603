#!/usr/bin/env python3
r"""
tidyfn.py

Scan the current directory for regular files and print `mv` commands that
would give each one a tidy name. Nothing is renamed; review the output and
run it yourself (e.g. `tidyfn | sh`).

A name is tidied by:
- Keeping only ASCII letters, digits, space, '.', '-' and '_'
- Lowercasing names that are mostly UPPERCASE (except README.md)
- Turning spaces into underscores
- Collapsing runs of separators and trimming them from both ends
- Dropping a separator just before the final '.'
- Turning every dot but the last into '_' (name.tar.gz keeps both)
"""

import argparse
import os
import re
import string
import sys
from typing import Dict, Iterable, List, Optional, Set, Tuple

SEPARATORS = " .-_"
UPPERCASE = frozenset(string.ascii_uppercase)
PRESERVED_CASE_NAMES = {"README.md"}
SHELL_SPECIAL_RE = re.compile(r'([!$"\\`])')
TAR_MARKER = ".tar."

USAGE = """\
Scans the current directory for regular files and prints safe rename commands.
It does not modify files itself; it only prints shell 'mv' commands that you
can review and run.

Note: No arguments are required/accepted; it always operates on the current
directory.

Output format:
  mv "<original file name>" "<sanitised file name>"
  Special shell characters '$', '!', '"', '\\' and '`' in the original file
  name are escaped.

How file names are sanitised:
  - Keeps letters, numbers, space, '.', '-' and '_'
  - Converts mostly-UPPERCASE names to lowercase (except 'README.md')
  - Replaces spaces with underscores
  - Collapses repeated special characters (space/dot/dash/underscore)
  - Trims leading and trailing special characters
  - Removes a separator immediately before the final '.'
  - Replaces all dots except the last one with underscores
    (exception for e.g. filename.tar.gz)

Names left with no usable characters get a warning on stderr instead of a
command. If that applies to every file needing a new name, nothing is
printed on stdout.
"""


# --- Sanitising pipeline ---

def is_ascii(text: str) -> bool:
    """True if every character is in the 7-bit ASCII range."""
    return all(ord(ch) < 128 for ch in text)


def proportion_block_caps(text: str) -> float:
    """
    Fraction of the name that is uppercase ASCII letters.

    The denominator is the encoded byte length, so a multi-byte character
    weighs more than one ASCII letter. A lone surrogate (an undecodable
    byte, or any other unencodable code point) counts as one byte. Empty
    text gives 0.0.
    """
    size = len(text.encode("utf-8", "replace"))
    if size == 0:
        return 0.0
    upper = sum(1 for ch in text if ch in UPPERCASE)
    return upper / size


def replace_substring(text: str, pattern: str, replacement: str) -> str:
    """Replace every non-overlapping occurrence of pattern, left to right."""
    if not pattern:
        raise ValueError("pattern must not be empty")
    return text.replace(pattern, replacement)


def _is_allowed(ch: str) -> bool:
    return is_ascii(ch) and (ch.isalnum() or ch in SEPARATORS)


def _collapse_separators(text: str) -> str:
    # keep the first separator of each run
    out: List[str] = []
    for ch in text:
        if ch in SEPARATORS and out and out[-1] in SEPARATORS:
            continue
        out.append(ch)
    return "".join(out)


def sanitise_core(text: str) -> str:
    """Filter characters, fix shouty case and tidy separators."""
    new = "".join(ch for ch in text if _is_allowed(ch))
    if new not in PRESERVED_CASE_NAMES and proportion_block_caps(new) > 0.5:
        new = new.lower()                    # only ASCII left after filtering
    new = new.replace(" ", "_")
    new = _collapse_separators(new)
    new = new.strip(SEPARATORS)
    return replace_substring(new, "_-_", "-")


def handle_before_dot(text: str) -> str:
    """Drop a single separator sitting right before the last dot."""
    dot = text.rfind(".")
    if dot <= 0:
        return text                          # no dot, or a leading one
    if text[dot - 1] in SEPARATORS:
        return text[:dot - 1] + text[dot:]
    return text


def remove_all_but_last_dot(text: str) -> str:
    """
    Replace every dot before the extension dot with '_'.

    If '.tar.' appears anywhere the penultimate dot is kept as well, so
    'backup.tar.gz' survives intact.
    """
    keep = text.rfind(".")
    if keep < 0:
        return text
    if TAR_MARKER in text:
        penultimate = text.rfind(".", 0, keep)
        if penultimate >= 0:
            keep = penultimate
    return text[:keep].replace(".", "_") + text[keep:]


def sanitise(text: str) -> str:
    return remove_all_but_last_dot(handle_before_dot(sanitise_core(text)))


def escape_for_shell(text: str) -> str:
    """Backslash-escape characters that stay special inside double quotes."""
    return SHELL_SPECIAL_RE.sub(r"\\\1", text)


# --- Directory driver ---

def find_regular_files(directory: str = ".") -> List[str]:
    """Return the sorted names of non-hidden regular files in directory."""
    names = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if not entry.is_file():      # follows symlinks, like stat()
                    continue
            except OSError:
                continue
            names.append(entry.name)
    return sorted(names)


def plan_renames(names: Iterable[str]) -> List[Tuple[str, str]]:
    """Return (old, new) pairs for names whose sanitised form differs."""
    changes = []
    for name in names:
        new = sanitise(name)
        if new != name:
            changes.append((name, new))
    return changes


def find_collisions(plan: List[Tuple[str, str]],
                    existing: Iterable[str]) -> List[Tuple[str, List[str]]]:
    """
    Report targets claimed twice, or already taken by a file that stays put.

    Returns (target, [sources]) in plan order. Empty targets are ignored.
    """
    moving: Set[str] = {old for old, _ in plan}
    staying: Set[str] = set(existing) - moving
    claims: Dict[str, List[str]] = {}
    for old, new in plan:
        if new:
            claims.setdefault(new, []).append(old)
    return [(target, sources) for target, sources in claims.items()
            if len(sources) > 1 or target in staying]


def format_command(old: str, new: str) -> str:
    return f'mv "{escape_for_shell(old)}" "{new}"'


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="tidyfn",
        description=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.parse_args(argv)                      # no arguments; extras exit with 2

    try:
        names = find_regular_files(".")
    except OSError as e:
        print(f"Could not open current directory: {e}", file=sys.stderr)
        return 1

    if not names:
        print("There seem to be no regular files in the working directory", file=sys.stderr)
        return 0

    plan = plan_renames(names)
    for target, sources in find_collisions(plan, names):
        joined = ", ".join(f'"{s}"' for s in sources)
        print(f'Warning: {joined} -> "{target}" clashes with another file', file=sys.stderr)

    printed = 0
    for old, new in plan:
        if not new:
            print(f'Warning: "{old}" has no usable characters, skipping', file=sys.stderr)
            continue
        print(format_command(old, new))
        printed += 1

    if not plan:
        print(f"All of the {len(names)} regular files in the current working directory "
              f"{os.getcwd()} seem to have sensible names already", file=sys.stderr)
    elif not printed:
        print(f"None of the {len(plan)} files needing a new name has any usable characters; "
              "no commands printed", file=sys.stderr)
    return 0


def run() -> int:
    """Console entry point: main() with stdout able to echo undecodable names."""
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(errors="surrogateescape")   # raw bytes back out
    return main()


if __name__ == "__main__":
    sys.exit(run())
