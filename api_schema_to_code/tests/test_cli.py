"""
Tests for the api_schema_to_code command.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from api_schema_to_code.api_schema_to_code import api_schema_to_code

TEST_DATA = Path(__file__).parent / "test_data"
PETSTORE = str(TEST_DATA / "petstore_30.yaml")


@pytest.fixture
def runner():
    return CliRunner()


class TestCommand:
    """Test the command line entry point"""

    def test_generates_python_client(self, runner, tmp_path):
        output = tmp_path / "out"
        result = runner.invoke(api_schema_to_code, [PETSTORE, str(output)])

        assert result.exit_code == 0, result.output
        assert "Generated" in result.output
        assert (output / "openapi_client" / "models" / "pet.py").exists()
        assert (output / "openapi_client" / "api" / "pets_api.py").exists()
        assert (output / "tests" / "test_pets_api.py").exists()

        header = (output / "openapi_client" / "models" / "pet.py").read_text().splitlines()[0]
        # The input exists and is shown by name; the output directory did not exist yet
        assert header.startswith("# This file was generated by api_schema_to_code petstore_30.yaml ")
        assert header.endswith(". Do not edit it by hand.")

    def test_existing_output_requires_force(self, runner, tmp_path):
        output = str(tmp_path / "out")
        assert runner.invoke(api_schema_to_code, [PETSTORE, output]).exit_code == 0

        result = runner.invoke(api_schema_to_code, [PETSTORE, output])
        assert result.exit_code == 1
        assert "already exist" in result.output

        result = runner.invoke(api_schema_to_code, ["--force", PETSTORE, output])
        assert result.exit_code == 0, result.output

    def test_language_and_kinds(self, runner, tmp_path):
        output = tmp_path / "out"
        result = runner.invoke(
            api_schema_to_code,
            ["-l", "kotlin", "-p", "com.example.pets", "-k", "models", "-k", "server", "-t", "none", PETSTORE, str(output)],
        )

        assert result.exit_code == 0, result.output
        assert (output / "src/main/kotlin/com/example/pets/model/Pet.kt").exists()
        assert (output / "src/main/kotlin/com/example/pets/controller/PetsController.kt").exists()
        assert not (output / "src/main/kotlin/com/example/pets/api").exists()

    def test_config_file(self, runner, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("language: java\npackage_name: com.example.pets\ntest_framework: spock\n")
        output = tmp_path / "out"

        result = runner.invoke(api_schema_to_code, ["-c", str(config), PETSTORE, str(output)])

        assert result.exit_code == 0, result.output
        assert (output / "src/main/java/com/example/pets/api/PetsApi.java").exists()
        assert (output / "src/test/groovy/com/example/pets/api/PetsApiSpec.groovy").exists()

    def test_invalid_config_file(self, runner, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("colour: blue\n")

        result = runner.invoke(api_schema_to_code, ["-c", str(config), PETSTORE, str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Unknown configuration option 'colour'" in result.output

    def test_invalid_document(self, runner, tmp_path):
        document = tmp_path / "swagger.yaml"
        document.write_text("swagger: '2.0'\ninfo:\n  title: Old\n  version: '1'\npaths: {}\n")

        result = runner.invoke(api_schema_to_code, [str(document), str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Generation failed" in result.output
        assert not (tmp_path / "out").exists()

    def test_incompatible_options(self, runner, tmp_path):
        result = runner.invoke(api_schema_to_code, ["-l", "java", "-t", "pytest", PETSTORE, str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "not available for java" in result.output


if __name__ == "__main__":
    pytest.main([__file__])
