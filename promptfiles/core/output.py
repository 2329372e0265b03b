# promptfiles/core/output.py
"""Renders the prompt and sends it to stdout, a file or the clipboard."""
import json
import sys
from pathlib import Path
from typing import Any, Dict
import pyperclip  # type: ignore
import structlog
import yaml

from promptfiles.config.settings import OutputFormat
from promptfiles.core.files import Files
from promptfiles.core.tree import FiletreeNode
from promptfiles.exceptions import OutputError

log = structlog.get_logger(__name__)

def render_filetree_section(tree: FiletreeNode) -> str:
    # the "Files:" header, a blank line and the tree, as the prompt and the copy summary show it.
    return f"Files:\n\n{tree.render()}\n"

def _render_plaintext(files: Files, tree: FiletreeNode) -> str:
    parts = [render_filetree_section(tree)]
    for info in files:
        if info.meta.is_excluded:
            continue
        parts.append(f"{info.meta.path}:")
        parts.append("")
        parts.append(info.text or "")
        parts.append("---")
    return "\n".join(parts) + "\n"

def _structured_payload(files: Files, tree: FiletreeNode) -> Dict[str, Any]:
    return {
        "tree": tree.to_dict(),
        "files": {
            str(info.meta.path): {
                "read_status": info.meta.read_status.value,
                "token_count": info.meta.token_count,
                "content": info.text,
            }
            for info in files
        },
    }

def render_prompt(files: Files, tree: FiletreeNode, output_format: OutputFormat = OutputFormat.PLAINTEXT) -> str:
    log.debug("rendering_prompt", format=output_format.value, files=len(files))
    if output_format is OutputFormat.JSON:
        return json.dumps(_structured_payload(files, tree), indent=2) + "\n"
    if output_format is OutputFormat.YAML:
        return yaml.safe_dump(_structured_payload(files, tree), allow_unicode=True, sort_keys=False, width=100000)
    return _render_plaintext(files, tree)

def write_to_stdout(text_content: str):
    # writes text to standard output.
    try:
        sys.stdout.write(text_content)
        sys.stdout.flush()
    except UnicodeEncodeError as e:
        log.warning("stdout_write_failed_trying_binary_fallback", error=str(e))
        sys.stdout.buffer.write(text_content.encode("utf-8", errors="replace"))
        sys.stdout.buffer.flush()

def write_to_file(output_file_path: Path, text_content: str):
    # writes text content to the specified file path.
    log.info("writing_output_to_file", path=str(output_file_path))
    try:
        output_file_path.write_text(text_content, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"failed to write to file '{output_file_path}': {e}") from e

def copy_to_clipboard(text_content: str) -> bool:
    """
    copies text content to the system clipboard using pyperclip.
    returns true if successful, false otherwise.
    """
    log.info("attempting_to_copy_output_to_clipboard")
    try:
        pyperclip.copy(text_content)
    except pyperclip.PyperclipException as e:
        log.warning(
            "clipboard_copy_failed_pyperclip_exception",
            error=str(e),
            note="ensure clipboard utility (xclip/pbcopy) is installed and accessible.",
        )
        return False
    log.info("successfully_copied_to_clipboard_via_pyperclip")
    return True
