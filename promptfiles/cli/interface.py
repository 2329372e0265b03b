# promptfiles/cli/interface.py
import sys
from dataclasses import MISSING, fields as dataclass_fields
from pathlib import Path
from typing import Any, Dict

import click
from click.shell_completion import get_completion_class
from click_option_group import optgroup
import structlog

from promptfiles import __version__ as app_version
from promptfiles.config.loader import load_and_merge_configs
from promptfiles.config.settings import DEFAULT_ENCODING, DEFAULT_OUTPUT_FORMAT, OutputFormat, PromptConfig
from promptfiles.core.output import copy_to_clipboard, render_filetree_section, write_to_file, write_to_stdout
from promptfiles.core.pipeline import PromptGenerator, format_top_files
from promptfiles.exceptions import PromptFilesError
from promptfiles.logging_setup import configure_logging

log = structlog.get_logger(__name__)

PROG_NAME = "prompt"

# cli parameter name -> PromptConfig attribute, for options that override config files.
CLI_PARAM_TO_PROMPTCONFIG_ATTR = {
    "exclude_patterns": "exclude_patterns",
    "no_gitignore": "include_vcs_ignored",
    "line_numbers": "line_numbers",
    "output_format_str": "output_format",
    "encoding": "encoding",
    "copy": "copy",
}

def _print_completions(ctx: click.Context, shell: str) -> None:
    complete_var = f"_{PROG_NAME.upper()}_COMPLETE"
    completion_cls = get_completion_class(shell)
    if completion_cls is None:
        raise click.BadParameter(f"unsupported shell '{shell}'", param_hint="--completions")
    click.echo(completion_cls(ctx.command, {}, PROG_NAME, complete_var).source())

def _build_effective_config(ctx: click.Context, cli_params: Dict[str, Any]) -> PromptConfig:
    effective_options: Dict[str, Any] = {}
    for fd in dataclass_fields(PromptConfig):
        if fd.init:
            effective_options[fd.name] = fd.default_factory() if fd.default_factory is not MISSING else fd.default

    effective_options.update(load_and_merge_configs())

    for param_name, attr in CLI_PARAM_TO_PROMPTCONFIG_ATTR.items():
        if ctx.get_parameter_source(param_name) != click.core.ParameterSource.COMMANDLINE:
            continue
        value = cli_params[param_name]
        if param_name == "exclude_patterns":
            # command-line excludes add to the configured ones.
            value = list(effective_options.get(attr) or []) + list(value)
        elif param_name == "output_format_str":
            value = OutputFormat.from_string(value) or DEFAULT_OUTPUT_FORMAT
        effective_options[attr] = value

    effective_options["path"] = cli_params["path"]
    effective_options["extra_paths"] = list(cli_params["extra_paths"])
    effective_options["count_tokens"] = cli_params["count"]
    effective_options["top"] = cli_params["top"]
    effective_options["output_file"] = cli_params["output_file"]
    return PromptConfig(**effective_options)

def _run_count_flow(config: PromptConfig) -> None:
    files = PromptGenerator(config).count()
    if config.top is not None:
        write_to_stdout(format_top_files(files, config.top))
    else:
        write_to_stdout(f"Total tokens: {files.total_tokens():_}\n")

def _run_prompt_generation_flow(config: PromptConfig) -> None:
    log.info("prompt_generation_orchestration_started")
    result = PromptGenerator(config).generate()

    if config.output_file:
        write_to_file(config.output_file, result.prompt)
        click.echo(f"Info: Output written to: {config.output_file}", err=True)
        return

    if config.copy:
        if copy_to_clipboard(result.prompt):
            excluded = [str(p) for p in result.files.excluded_paths()]
            click.echo(render_filetree_section(result.tree), nl=False)
            click.echo(f"{result.token_count:_} total tokens copied")
            click.echo(f"Excluded: {excluded}")
            return
        click.echo("Info: Clipboard copy failed. Outputting to stdout instead.", err=True)

    write_to_stdout(result.prompt)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("path", required=False, default=".", type=click.Path(path_type=Path))
@click.argument("extra_paths", nargs=-1, type=click.Path(path_type=Path))
@optgroup.group("Filtering Options", help="Control which files are read into the prompt.")
@optgroup.option("-e", "--exclude", "exclude_patterns", multiple=True, metavar="GLOB", help="Glob patterns (relative to each root) for files to mark excluded.")
@optgroup.option("--no-gitignore", "no_gitignore", is_flag=True, default=False, help="Include files ignored by git.")
@optgroup.group("Output Options", help="Shape and destination of the prompt.")
@optgroup.option("-n", "--line-numbers", "line_numbers", is_flag=True, default=False, help="Prefix file content with line numbers.")
@optgroup.option("-F", "--format", "output_format_str", type=click.Choice([f.value for f in OutputFormat]), default=DEFAULT_OUTPUT_FORMAT.value, help=f"Output format. Default: {DEFAULT_OUTPUT_FORMAT.value}.")
@optgroup.option("--copy", "copy", is_flag=True, default=False, help="Copy the prompt to the clipboard and print a summary instead.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Write the prompt to a file.")
@optgroup.group("Token Counting", help="Inspect prompt size instead of producing it.")
@optgroup.option("--count", "count", is_flag=True, default=False, help="Print the total token count of the files.")
@optgroup.option("--top", "top", type=click.IntRange(min=1), default=None, metavar="N", help="Print the N files with the most tokens.")
@optgroup.option("--encoding", "encoding", default=DEFAULT_ENCODING, help=f"Tiktoken encoding. Default: {DEFAULT_ENCODING}.")
@optgroup.group("Application Behavior", help="Logging and shell integration.")
@optgroup.option("--completions", "completions", type=click.Choice(["bash", "zsh", "fish"]), default=None, metavar="SHELL", help="Print a shell completion script and exit.")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="promptfiles", prog_name=PROG_NAME, help="Show version and exit.")
@click.pass_context
def main_cli(ctx: click.Context, **cli_params: Any):
    """prompt: read files under PATH (and EXTRA_PATHS) into a single LLM prompt."""
    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1:
        log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2:
        log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs", False))

    log.debug("cli_command_invoked", params=cli_params)

    if cli_params["completions"]:
        _print_completions(ctx, cli_params["completions"])
        return

    try:
        config = _build_effective_config(ctx, cli_params)
        if config.count_tokens:
            _run_count_flow(config)
        else:
            _run_prompt_generation_flow(config)
    except PromptFilesError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(1)
