"""Rich tree visualization for unused file results."""

from pathlib import Path

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

console = Console()


def build_results_tree(
    unused_files: list[str],
    project_name: str,
    type_only_files: list[str] | None = None,
) -> Tree:
    """Build a Rich tree of unused (and type-only) files grouped by directory.

    Paths are relative to the project root, as written in the report.
    """
    unused = set(unused_files)
    # A file reported unused is drawn as unused even if types touch it
    type_only = set(type_only_files or []) - unused
    marked = sorted({*unused, *type_only}, key=lambda p: Path(p).parts)

    root = Tree(f"[bold]{project_name}[/]", guide_style="dim")

    # Track directories we've added
    dir_nodes: dict[Path, Tree] = {}

    for rel in marked:
        file_path = Path(rel)

        parent = root
        for i, part in enumerate(file_path.parts[:-1]):
            dir_path = Path(*file_path.parts[: i + 1])
            if dir_path not in dir_nodes:
                dir_nodes[dir_path] = parent.add(f"[bold blue]{part}/[/]")
            parent = dir_nodes[dir_path]

        label = Text()
        if rel in type_only:
            label.append("~ ", style="yellow bold")
            label.append(file_path.name, style="yellow")
            label.append(" (type-only)", style="dim")
        else:
            label.append("x ", style="red bold")
            label.append(file_path.name, style="red")
        parent.add(label)

    return root


def build_references_tree(file_label: str, entry: dict, root: Path | None = None) -> Tree:
    """Build a tree of one file's outgoing and incoming references.

    ``entry`` is the file's record from the report's ``reference_graph``.
    """
    tree = Tree(f"[bold yellow]{file_label}[/]", guide_style="dim")

    references = entry.get("references", [])
    out_node = tree.add(f"[cyan]references[/] ({len(references)})")
    for ref in references:
        lines = ", ".join(str(n) for n in ref.get("lines", []))
        out_node.add(
            f"{_display_path(ref['target'], root)} "
            f"[{_kind_color(ref['kind'])}]{ref['kind']}[/] [dim]line {lines}[/]"
        )

    referenced_by = entry.get("referenced_by", [])
    in_node = tree.add(f"[cyan]referenced by[/] ({len(referenced_by)})")
    for ref in referenced_by:
        in_node.add(
            f"{_display_path(ref['source'], root)} [{_kind_color(ref['kind'])}]{ref['kind']}[/]"
        )

    return tree


def _kind_color(kind: str) -> str:
    """Get color based on reference kind."""
    if kind == "type_only":
        return "yellow"
    if kind == "side_effect":
        return "magenta"
    return "green"


def _display_path(path: str, root: Path | None) -> str:
    if root is None:
        return path
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path


def display_tree(tree: Tree) -> None:
    """Display the tree to console."""
    console.print()
    console.print(tree)
    console.print()
