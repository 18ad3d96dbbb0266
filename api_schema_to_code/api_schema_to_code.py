from pathlib import Path

import click

from .cli_utils import reconstruct_command_line
from .pipeline import (
    ArtifactWriter,
    ConfigError,
    GenerationError,
    GeneratorConfig,
    OutputKind,
    OutputMode,
    PipelineGenerator,
    TargetLanguage,
    TestFramework,
    configure_logging,
    load_document,
)
from .pipeline.emitter import JinjaTemplateSet
from .pipeline.schema_ast import Dialect


def load_config(path: Path) -> GeneratorConfig:
    """Read a GeneratorConfig from a JSON or YAML file."""
    try:
        data = load_document(path)
    except GenerationError as e:
        raise ConfigError(f"Cannot read configuration {path}: {e.issues[0].message}") from e
    return GeneratorConfig.from_dict(data)


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True), help="JSON or YAML configuration file")
@click.option("--language", "-l", default=None, type=click.Choice([language.value for language in TargetLanguage]))
@click.option(
    "--output-kind",
    "-k",
    "output_kinds",
    multiple=True,
    type=click.Choice([kind.value for kind in OutputKind]),
    help="Artifact family to generate; repeat for several (default: models and client)",
)
@click.option("--test-framework", "-t", default=None, type=click.Choice([framework.value for framework in TestFramework]))
@click.option("--package", "-p", "package_name", default=None, type=str, help="Root package of the generated code")
@click.option("--dialect", default=None, type=click.Choice([dialect.value for dialect in Dialect]), help="Force the document dialect")
@click.option("--template-dir", default=None, type=click.Path(exists=True, file_okay=False, resolve_path=True), help="Templates overriding the bundled ones")
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite existing files")
@click.option("--log-level", default="warning", type=click.Choice(["debug", "info", "warning", "error"]))
@click.option("--log-format", default="console", type=click.Choice(["console", "json"]))
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.argument("output", type=click.Path(file_okay=False, resolve_path=True))
def api_schema_to_code(config, language, output_kinds, test_framework, package_name, dialect, template_dir, force, log_level, log_format, paths, output):
    configure_logging(log_level, log_format)

    try:
        config = load_config(Path(config)) if config is not None else GeneratorConfig()

        # CLI options override the config file
        if language is not None:
            config.language = TargetLanguage(language)
        if output_kinds:
            config.output_kinds = [OutputKind(kind) for kind in output_kinds]
        if test_framework is not None:
            config.test_framework = TestFramework(test_framework)
        if package_name is not None:
            config.package_name = package_name
        if force:
            config.output.mode = OutputMode.FORCE

        command_line = reconstruct_command_line(api_schema_to_code)
        template_set = None
        if template_dir is not None:
            config.validate()
            template_set = JinjaTemplateSet(config, Path(template_dir))
        generator = PipelineGenerator(config, template_set=template_set, dialect=Dialect(dialect) if dialect else None, command_line=command_line)

        documents = [load_document(Path(path)) for path in paths]
        artifacts = generator.generate(documents, sources=[Path(path).name for path in paths])
        written = ArtifactWriter(config.output).write_all(Path(output), artifacts)
    except GenerationError as e:
        raise click.ClickException(str(e)) from e
    except (ConfigError, FileExistsError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated {len(written)} file(s) in {output}")
