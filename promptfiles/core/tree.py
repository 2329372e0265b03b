# promptfiles/core/tree.py
"""Text rendering of the discovered file set as a directory tree."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from promptfiles.core.files import FileMeta, Files, ReadStatus

@dataclass
class FiletreeNode:
    name: str
    meta: Optional[FileMeta] = None
    children: Dict[str, "FiletreeNode"] = field(default_factory=dict)

    def insert_path(self, components: Sequence[str], meta: Optional[FileMeta]) -> None:
        if not components:
            return
        name = components[0]
        is_last = len(components) == 1
        child = self.children.get(name)
        if child is None:
            child = FiletreeNode(name, meta if is_last else None)
            self.children[name] = child
        if not is_last:
            child.insert_path(components[1:], meta)

    def label(self) -> str:
        if self.meta is None:
            return self.name
        status = self.meta.read_status
        if status is ReadStatus.EXCLUDED_EXPLICITLY:
            return f"{self.name} (excluded)"
        if status is ReadStatus.EXCLUDED_BINARY_DETECTED:
            return f"{self.name} (auto-excluded, binary detected)"
        if status is ReadStatus.TOKEN_COUNTED:
            return f"{self.name} ({self.meta.token_count_or_zero()} tokens)"
        return self.name

    def render_lines(self, indent_str: str = "") -> List[str]:
        output_lines: List[str] = []
        names = sorted(self.children)
        for i, name in enumerate(names):
            child = self.children[name]
            is_last = i == len(names) - 1
            connector = "└── " if is_last else "├── "
            output_lines.append(f"{indent_str}{connector}{child.label()}")
            if child.children:
                output_lines.extend(child.render_lines(indent_str + ("    " if is_last else "│   ")))
        return output_lines

    def render(self) -> str:
        return "\n".join([self.label(), *self.render_lines()])

    def to_dict(self) -> Dict[str, object]:
        # nested mapping for structured output; leaves map to their read status.
        result: Dict[str, object] = {}
        for name in sorted(self.children):
            child = self.children[name]
            if child.children:
                result[name] = child.to_dict()
            else:
                result[name] = child.meta.read_status.value if child.meta else None
        return result

def build_tree(files: Files) -> FiletreeNode:
    root = FiletreeNode(".")
    for info in files:
        root.insert_path(info.meta.path.parts, info.meta)
    return root

def render_tree(files: Files) -> str:
    return build_tree(files).render()
