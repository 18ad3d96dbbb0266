"""
Utility functions for API schema to code generator.
"""

import re

# Letter runs (any script) and digit runs; separators and symbols are dropped
_TOKEN_PATTERN = re.compile(r"[^\W\d_]+|[0-9]+")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots) to spaces."""
    return re.sub(r"[_\-.\s/{}]+", " ", text)


def _split_case(run: str) -> list[str]:
    """Split a letter run at lower->upper and acronym->word boundaries."""
    words = []
    start = 0
    for index in range(1, len(run)):
        previous, current = run[index - 1], run[index]
        following = run[index + 1] if index + 1 < len(run) else ""
        if (previous.islower() and current.isupper()) or (previous.isupper() and current.isupper() and following.islower()):
            words.append(run[start:index])
            start = index
    words.append(run[start:])
    return words


def split_words(text: str) -> list[str]:
    """Split text into words, handling camelCase and acronym boundaries.

    Letters of any script are kept, so "ünicode" stays one word.

    Examples:
        "firstName" -> ["first", "Name"]
        "HTTPServer" -> ["HTTP", "Server"]
        "get_pets-by id" -> ["get", "pets", "by", "id"]
    """
    words = []
    for token in _TOKEN_PATTERN.findall(_normalize_separators(text)):
        words.extend([token] if token.isdigit() else _split_case(token))
    return words


def _capitalize_and_join(words: list[str]) -> str:
    return "".join(word.capitalize() for word in words if word)


def snake_to_pascal_case(text: str) -> str:
    """PascalCase from any mix of separators, camelCase and acronyms.

    Used for model, API group and operation names:
        "pet_category" -> "PetCategory"
        "listPets_200_response" -> "ListPets200Response"
        "/pets/{petId}" -> "PetsPetId"
        "HTTPStatus" -> "HttpStatus"
        "PET_STATUS" -> "PetStatus"
    """
    if not text:
        return ""
    return _capitalize_and_join(split_words(text))


def to_camel_case(text: str) -> str:
    """Convert text to camelCase ("pet_id" -> "petId")."""
    pascal = snake_to_pascal_case(text)
    if not pascal:
        return ""
    return pascal[0].lower() + pascal[1:]


def to_snake_case(text: str) -> str:
    """Convert text to snake_case ("petId" -> "pet_id", "HTTPServer" -> "http_server")."""
    return "_".join(word.lower() for word in split_words(text))


def to_upper_snake_case(text: str) -> str:
    """Convert text to UPPER_SNAKE_CASE ("petId" -> "PET_ID")."""
    return to_snake_case(text).upper()
