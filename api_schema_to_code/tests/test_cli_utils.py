#!/usr/bin/env python3

import click
import pytest

from api_schema_to_code.api_schema_to_code import api_schema_to_code
from api_schema_to_code.cli_utils import reconstruct_command_line


class TestCliUtils:
    """Test cases for CLI utilities"""

    def test_reconstruct_command_line_without_context(self):
        """Without an active Click context the program name is returned"""
        assert reconstruct_command_line(api_schema_to_code) == "api_schema_to_code"

    def test_reconstruct_command_line_with_context(self):
        """Arguments come first, then options that differ from their defaults"""
        with click.Context(api_schema_to_code) as ctx:
            ctx.params = {
                "config": None,
                "language": "java",
                "output_kinds": ("models", "server"),
                "force": True,
                "log_level": "warning",
                "paths": ("/nonexistent/petstore.yaml",),
                "output": "/nonexistent/out",
            }
            result = reconstruct_command_line(api_schema_to_code)

        assert result == (
            "api_schema_to_code /nonexistent/petstore.yaml /nonexistent/out --language java --output-kind models --output-kind server --force"
        )

    def test_existing_paths_are_shown_by_name(self, tmp_path):
        """Existing files are reduced to their name so headers do not leak local directories"""
        document = tmp_path / "petstore.yaml"
        document.write_text("openapi: 3.0.3\n")

        with click.Context(api_schema_to_code) as ctx:
            ctx.params = {"paths": (str(document),), "output": "out"}
            result = reconstruct_command_line(api_schema_to_code)

        assert result == "api_schema_to_code petstore.yaml out"


if __name__ == "__main__":
    pytest.main([__file__])
