"""
Naming helpers shared by the resolution passes and the emitter.

Converts schema, property, parameter and operation names to the target
language's conventions and escapes reserved words. Identifier substitution
(dots, dashes and whitespace by default) runs before case conversion.
"""

from __future__ import annotations

import keyword
import re

from ...utils import snake_to_pascal_case, to_camel_case, to_snake_case, to_upper_snake_case
from ..config import GeneratorConfig, NamingCase, TargetLanguage

JAVA_RESERVED_KEYWORDS = {
    "abstract",
    "assert",
    "boolean",
    "break",
    "byte",
    "case",
    "catch",
    "char",
    "class",
    "const",
    "continue",
    "default",
    "do",
    "double",
    "else",
    "enum",
    "extends",
    "final",
    "finally",
    "float",
    "for",
    "goto",
    "if",
    "implements",
    "import",
    "instanceof",
    "int",
    "interface",
    "long",
    "native",
    "new",
    "null",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "short",
    "static",
    "strictfp",
    "super",
    "switch",
    "synchronized",
    "this",
    "throw",
    "throws",
    "transient",
    "true",
    "false",
    "try",
    "void",
    "volatile",
    "while",
    "record",
    "var",
    "yield",
}

KOTLIN_RESERVED_KEYWORDS = {
    "as",
    "break",
    "class",
    "continue",
    "do",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "in",
    "interface",
    "is",
    "null",
    "object",
    "package",
    "return",
    "super",
    "this",
    "throw",
    "true",
    "try",
    "typealias",
    "typeof",
    "val",
    "var",
    "when",
    "while",
}

# Names that would shadow what generated Python modules rely on
PYTHON_RESERVED_NAMES = set(keyword.kwlist) | {"self", "field", "dataclass", "Any", "Optional", "Union"}

RESERVED_WORDS: dict[TargetLanguage, set[str]] = {
    TargetLanguage.PYTHON: PYTHON_RESERVED_NAMES,
    TargetLanguage.JAVA: JAVA_RESERVED_KEYWORDS,
    TargetLanguage.KOTLIN: KOTLIN_RESERVED_KEYWORDS,
}

# Spelled-out names of symbols, used for whole-symbol enum literals and the collision retry
SYMBOL_NAMES = {
    "$": "DOLLAR",
    "#": "HASH",
    "%": "PERCENT",
    "&": "AMPERSAND",
    "*": "STAR",
    "+": "PLUS",
    "-": "MINUS",
    ".": "DOT",
    "/": "SLASH",
    ":": "COLON",
    ";": "SEMICOLON",
    "<": "LESS_THAN",
    "=": "EQUAL",
    ">": "GREATER_THAN",
    "?": "QUESTION_MARK",
    "@": "AT",
    "\\": "BACKSLASH",
    "^": "CARET",
    "|": "PIPE",
    "~": "TILDE",
    "!": "EXCLAMATION",
    ",": "COMMA",
    "'": "APOSTROPHE",
    '"': "QUOTE",
    "(": "LEFT_PARENTHESIS",
    ")": "RIGHT_PARENTHESIS",
    "[": "LEFT_SQUARE_BRACKET",
    "]": "RIGHT_SQUARE_BRACKET",
    "{": "LEFT_CURLY_BRACKET",
    "}": "RIGHT_CURLY_BRACKET",
    "_": "UNDERSCORE",
    " ": "SPACE",
}

_NON_WORD = re.compile(r"\W+")


def sanitize_enum_case(value: object, numeric: bool, spell_symbols: bool = False) -> str:
    """Turn an enum literal into an UPPER_SNAKE case name.

    Examples:
        "" -> "EMPTY"
        -1.5 (numeric) -> "NUMBER_MINUS_1_DOT_5"
        "available-now" -> "AVAILABLE_NOW"
        "2xx" -> "_2_XX"

    Args:
        value: The enum literal
        numeric: Whether the enum's type is integer/number
        spell_symbols: Spell punctuation out ("a-b" -> "A_MINUS_B"); used to break collisions

    Returns:
        The case name
    """
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    text = str(value)
    if text == "":
        return "EMPTY"
    if text in SYMBOL_NAMES:
        return SYMBOL_NAMES[text]

    if numeric:
        result = "NUMBER_" + text
        result = result.replace("-", "MINUS_").replace("+", "PLUS_").replace(".", "_DOT_")
        return result

    if spell_symbols:
        text = "".join(f" {SYMBOL_NAMES[ch]} " if ch in SYMBOL_NAMES and ch not in (" ", "_") else ch for ch in text)

    result = to_upper_snake_case(_NON_WORD.sub("_", text))
    if not result:
        # Only symbols: spell them out
        result = "_".join(SYMBOL_NAMES.get(ch, f"U{ord(ch):04X}") for ch in text if not ch.isspace()) or "EMPTY"
    if result[0].isdigit():
        result = "_" + result
    return result


class NamingHelper:
    """Language-aware name conversion for one generator configuration."""

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.language = config.language
        self.naming_case = config.effective_naming_case()
        self.reserved = RESERVED_WORDS[config.language]
        self._substitution = re.compile(config.formatter.identifier_substitution_pattern)

    def substitute(self, text: str) -> str:
        """Apply the identifier substitution pattern."""
        return self._substitution.sub(self.config.formatter.identifier_substitution, text)

    def schema_name(self, candidate: str) -> str:
        """Registry name for a synthesized inline schema ("Pet_tag" -> "PetTag")."""
        name = snake_to_pascal_case(self.substitute(candidate)) or "InlineSchema"
        mapping = self.config.inline_schema_name_mapping
        return mapping.get(candidate) or mapping.get(name) or name

    def model_name(self, schema_name: str) -> str:
        """Class name of a registered schema in generated code."""
        mapped = self.config.model_name_mapping.get(schema_name)
        if mapped:
            return mapped
        base = snake_to_pascal_case(self.substitute(schema_name)) or "Model"
        name = f"{self.config.model_name_prefix}{base}{self.config.model_name_suffix}"
        if name[0].isdigit():
            name = "Model" + name
        if name.lower() in {word.lower() for word in self.reserved}:
            name = name + "Model"
        return name

    def module_name(self, schema_name: str) -> str:
        """File/module stem for a model ("PetTag" -> "pet_tag")."""
        return to_snake_case(self.model_name(schema_name))

    def property_name(self, name: str) -> str:
        """Field name for a property, in the configured naming case."""
        text = self.substitute(name)
        if self.naming_case == NamingCase.SNAKE:
            result = to_snake_case(text)
        elif self.naming_case == NamingCase.CAMEL:
            result = to_camel_case(text)
        else:
            result = re.sub(r"\W", "_", text)
        if not result:
            result = "value"
        if result[0].isdigit():
            result = "_" + result
        return self.escape(result)

    def parameter_name(self, name: str) -> str:
        return self.property_name(name)

    def operation_name(self, operation_id: str) -> str:
        """Method name for an operation."""
        text = self.substitute(operation_id)
        if self.language == TargetLanguage.PYTHON:
            result = to_snake_case(text)
        else:
            result = to_camel_case(text)
        return self.escape(result or "call")

    def group_name(self, group: str) -> str:
        """Class-name stem of an API group ("pet store" -> "PetStore")."""
        return snake_to_pascal_case(self.substitute(group)) or "Default"

    def group_module(self, group: str) -> str:
        return to_snake_case(self.group_name(group))

    def constant_name(self, name: str) -> str:
        return to_upper_snake_case(self.substitute(name))

    def escape(self, name: str) -> str:
        """Escape a reserved word for the target language."""
        if name not in self.reserved:
            return name
        if self.language == TargetLanguage.PYTHON:
            return f"{name}_"
        if self.language == TargetLanguage.KOTLIN:
            return f"`{name}`"
        return f"_{name}"
