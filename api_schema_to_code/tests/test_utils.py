#!/usr/bin/env python3

import pytest

from api_schema_to_code.utils import snake_to_pascal_case, split_words, to_camel_case, to_snake_case, to_upper_snake_case


class TestCaseConversion:
    """Test identifier case conversion helpers"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("first_name", "FirstName"),
            ("FIRST_NAME", "FirstName"),
            ("actionTemplate", "ActionTemplate"),
            ("first 3 rows", "First3Rows"),
            ("ABC", "Abc"),
            ("pet-store.v2", "PetStoreV2"),
            ("", ""),
        ],
    )
    def test_pascal_case(self, text, expected):
        assert snake_to_pascal_case(text) == expected

    def test_split_words(self):
        assert split_words("HTTPServer") == ["HTTP", "Server"]
        assert split_words("/pets/{petId}") == ["pets", "pet", "Id"]
        assert split_words("HTTPs2Go") == ["HTT", "Ps", "2", "Go"]

    def test_non_ascii_letters_are_kept(self):
        assert split_words("ünicode") == ["ünicode"]
        assert split_words("größeMaß") == ["größe", "Maß"]
        assert snake_to_pascal_case("café_menü") == "CaféMenü"
        assert to_upper_snake_case("ünicode") == "ÜNICODE"

    def test_camel_case(self):
        assert to_camel_case("pet_id") == "petId"
        assert to_camel_case("ListPets") == "listPets"
        assert to_camel_case("") == ""

    def test_snake_case(self):
        assert to_snake_case("petId") == "pet_id"
        assert to_snake_case("HTTPServer") == "http_server"
        assert to_snake_case("NewPetStatus") == "new_pet_status"

    def test_upper_snake_case(self):
        assert to_upper_snake_case("petId") == "PET_ID"
        assert to_upper_snake_case("available-now") == "AVAILABLE_NOW"


if __name__ == "__main__":
    pytest.main([__file__])
