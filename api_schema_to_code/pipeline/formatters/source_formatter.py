"""
Language-aware source formatter for generated artifacts.

Normalizes indentation and blank lines, groups and de-duplicates imports,
and wraps long bracketed argument lists one argument per line. Every
artifact passes through it, so rendered templates only have to be
structurally correct, not pretty.
"""

from __future__ import annotations

import collections
import math
import sys

from ..config import FormatterConfig, TargetLanguage
from .base import Formatter

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

JVM_PLATFORM_PREFIXES = ("java.", "javax.", "kotlin.")


def _scan_groups(text: str) -> list[tuple[int, int]]:
    """Top-level bracket groups (open index, close index) of a line, ignoring string literals."""
    groups = []
    stack: list[tuple[str, int]] = []
    quote = None
    escaped = False
    for index, char in enumerate(text):
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char in OPENERS:
            stack.append((char, index))
        elif char in CLOSERS:
            if not stack or stack[-1][0] != CLOSERS[char]:
                return groups
            _, start = stack.pop()
            if not stack:
                groups.append((start, index))
    return groups


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on separators outside brackets and string literals."""
    parts = []
    depth = 0
    quote = None
    escaped = False
    current = []
    for char in text:
        if quote is not None:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in ("'", '"'):
            quote = char
        elif char in OPENERS:
            depth += 1
        elif char in CLOSERS:
            depth -= 1
        elif char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _leading(line: str) -> str:
    return line[: len(line) - len(line.lstrip(" "))]


class SourceFormatter(Formatter):
    """Formats one language's artifacts.

    Args:
        language: Target language of the artifacts
        local_packages: Top-level packages treated as first-party when grouping Python imports
    """

    def __init__(self, language: TargetLanguage, local_packages: tuple[str, ...] = ()):
        self.language = language
        self.local_packages = set(local_packages)

    def format(self, code: str, config: FormatterConfig) -> str:
        lines = code.replace("\r\n", "\n").split("\n")
        lines = self._reindent(lines, config.indent_size)
        lines = [line.rstrip() for line in lines]
        lines = self._group_imports(lines)
        lines = self._wrap(lines, config)
        lines = self._collapse_blank_lines(lines)
        return "\n".join(lines).strip("\n") + "\n"

    # Indentation

    def _reindent(self, lines: list[str], indent_size: int) -> list[str]:
        """Re-express the template's indent unit (and tabs) in indent_size spaces."""
        expanded = []
        for line in lines:
            stripped = line.lstrip("\t")
            tabs = len(line) - len(stripped)
            expanded.append(" " * (tabs * indent_size) + stripped if tabs else line)

        widths = [len(_leading(line)) for line in expanded if line.strip() and _leading(line)]
        unit = 0
        for width in widths:
            unit = math.gcd(unit, width)
        if unit in (0, 1, indent_size):
            return expanded

        result = []
        for line in expanded:
            leading = len(_leading(line))
            if leading and line.strip():
                level, rest = divmod(leading, unit)
                line = " " * (level * indent_size + rest) + line.lstrip(" ")
            result.append(line)
        return result

    # Blank lines

    def _collapse_blank_lines(self, lines: list[str]) -> list[str]:
        limit = 2 if self.language == TargetLanguage.PYTHON else 1
        result: list[str] = []
        blanks = 0
        for line in lines:
            if not line:
                blanks += 1
                if blanks > limit:
                    continue
                if self.language != TargetLanguage.PYTHON and result and result[-1].endswith("{"):
                    continue
            else:
                if self.language != TargetLanguage.PYTHON and line.lstrip().startswith("}"):
                    while result and not result[-1]:
                        result.pop()
                blanks = 0
            result.append(line)
        return result

    # Long lines

    def _wrap(self, lines: list[str], config: FormatterConfig) -> list[str]:
        result = []
        in_docstring = False
        for line in lines:
            quotes = line.count('"""') + line.count("'''")
            if self.language == TargetLanguage.PYTHON and (in_docstring or quotes):
                result.append(line)
                if quotes % 2 == 1:
                    in_docstring = not in_docstring
                continue
            result.extend(self._wrap_line(line, config, 0))
        return result

    def _wrap_line(self, line: str, config: FormatterConfig, depth: int) -> list[str]:
        if len(line) <= config.line_length or depth > 3:
            return [line]
        stripped = line.lstrip()
        if stripped.startswith(("#", "//", "*", "/*", "import ", "from ", "package ")):
            return [line]

        span = next(((start, end) for start, end in _scan_groups(line) if line[start + 1 : end].strip()), None)
        if span is None:
            return [line]
        start, end = span
        arguments = [argument.strip() for argument in split_top_level(line[start + 1 : end])]
        arguments = [argument for argument in arguments if argument]
        if not arguments:
            return [line]

        indent = _leading(line)
        inner = indent + " " * config.indent_size
        trailing_comma = self.language in (TargetLanguage.PYTHON, TargetLanguage.KOTLIN)
        wrapped = [line[: start + 1]]
        for index, argument in enumerate(arguments):
            last = index == len(arguments) - 1
            comma = "," if not last or trailing_comma else ""
            wrapped.extend(self._wrap_line(f"{inner}{argument}{comma}", config, depth + 1))
        wrapped.append(indent + line[end:].lstrip())
        return wrapped

    # Imports

    def _group_imports(self, lines: list[str]) -> list[str]:
        start = end = None
        for index, line in enumerate(lines):
            if self._is_import(line):
                if start is None:
                    start = index
                end = index
            elif start is not None and line.strip() and not line.startswith(("#", "//")):
                break
        if start is None:
            return lines

        block = [line for line in lines[start : end + 1] if self._is_import(line)]
        if self.language == TargetLanguage.PYTHON:
            assembled = self.assemble_python_imports(block)
        else:
            assembled = self.assemble_jvm_imports(block)
        return lines[:start] + assembled + lines[end + 1 :]

    def _is_import(self, line: str) -> bool:
        if self.language == TargetLanguage.PYTHON:
            if line.endswith("("):
                return False
            return line.startswith("import ") or (line.startswith("from ") and " import " in line)
        return line.startswith("import ")

    def _python_group(self, module: str) -> int:
        if module == "__future__":
            return 0
        if module.startswith("."):
            return 3
        top = module.split(".")[0]
        if top in self.local_packages:
            return 3
        if top in sys.stdlib_module_names:
            return 1
        return 2

    def assemble_python_imports(self, block: list[str]) -> list[str]:
        """Group Python imports: __future__, stdlib, third-party, local; sorted and de-duplicated."""
        plain: set[str] = set()
        from_imports: dict[str, set[str]] = collections.defaultdict(set)
        for line in block:
            if line.startswith("import "):
                for module in line[len("import ") :].split(","):
                    plain.add(module.strip())
            else:
                module, names = line[len("from ") :].split(" import ", 1)
                for name in names.split(","):
                    if name.strip():
                        from_imports[module.strip()].add(name.strip())

        groups: dict[int, list[str]] = collections.defaultdict(list)
        for module in sorted(plain):
            groups[self._python_group(module)].append(f"import {module}")
        for module in sorted(from_imports):
            groups[self._python_group(module)].append(f"from {module} import {', '.join(sorted(from_imports[module]))}")

        assembled: list[str] = []
        for group in sorted(groups):
            if assembled:
                assembled.append("")
            assembled.extend(groups[group])
        return assembled

    def assemble_jvm_imports(self, block: list[str]) -> list[str]:
        """Group JVM imports: libraries first, then the platform (java., javax., kotlin.)."""
        terminator = ";" if self.language == TargetLanguage.JAVA else ""
        names = {line[len("import ") :].strip().rstrip(";").strip() for line in block}
        libraries = sorted(name for name in names if not name.startswith(JVM_PLATFORM_PREFIXES))
        platform = sorted(name for name in names if name.startswith(JVM_PLATFORM_PREFIXES))

        assembled = [f"import {name}{terminator}" for name in libraries]
        if libraries and platform:
            assembled.append("")
        assembled.extend(f"import {name}{terminator}" for name in platform)
        return assembled
