"""Tree visualization of the branch dependency graph.

Pure rendering: takes a BranchGraph and returns text. Used by `twig tree`,
`--show-graph` on rebase and cascade, and the adoption preview.

Example:
    main
    ├─ feat/a [PROJ-1, #12]
    │  ├─ feat/b (current)
    │  └─ feat/c
    └─ feat/d (missing)
"""

from twig.core.graph import BranchGraph


def format_graph_as_tree(
    graph: BranchGraph,
    roots: list[str],
    *,
    max_depth: int | None = None,
) -> str:
    """Format the graph as one tree per root.

    A branch reachable through several parents (a diamond merge point) is
    drawn in full the first time and as "(see above)" afterwards.

    Args:
        graph: Dependency graph to render
        roots: Branches to draw at the top level, in order
        max_depth: Deepest level of children to draw (None = unlimited)

    Returns:
        Multi-line string with tree visualization
    """
    roots = [r for r in roots if r in graph]
    if not roots:
        return "No branches found"

    implied = set(graph.implied_edges)
    rendered: set[str] = set()
    lines: list[str] = []
    for root in roots:
        _format_branch_recursive(
            graph,
            root,
            lines=lines,
            prefix="",
            is_last=True,
            is_root=True,
            depth=0,
            max_depth=max_depth,
            rendered=rendered,
            implied=implied,
            parent=None,
        )

    return "\n".join(lines)


def format_branch_label(graph: BranchGraph, name: str) -> str:
    """Branch name with its linked references and status markers."""
    node = graph.node(name)
    label = name

    refs: list[str] = []
    if node.metadata is not None:
        if node.metadata.jira_issue:
            refs.append(node.metadata.jira_issue)
        if node.metadata.github_pr is not None:
            refs.append(f"#{node.metadata.github_pr}")
    if refs:
        label += f" [{', '.join(refs)}]"

    if node.is_current:
        label += " (current)"
    if not node.is_live:
        label += " (missing)"
    return label


def _format_branch_recursive(
    graph: BranchGraph,
    name: str,
    *,
    lines: list[str],
    prefix: str,
    is_last: bool,
    is_root: bool,
    depth: int,
    max_depth: int | None,
    rendered: set[str],
    implied: set[tuple[str, str]],
    parent: str | None,
) -> None:
    label = format_branch_label(graph, name)
    if parent is not None and (parent, name) in implied:
        label += " (orphan)"

    seen_before = name in rendered
    if seen_before:
        label += " (see above)"
    rendered.add(name)

    if is_root:
        lines.append(label)
    else:
        connector = "└─" if is_last else "├─"
        lines.append(f"{prefix}{connector} {label}")

    if seen_before:
        return
    if max_depth is not None and depth >= max_depth:
        return

    children = sorted(graph.children(name))
    if not children:
        return

    if is_root:
        child_prefix = ""
    else:
        child_prefix = prefix + ("   " if is_last else "│  ")

    for i, child in enumerate(children):
        _format_branch_recursive(
            graph,
            child,
            lines=lines,
            prefix=child_prefix,
            is_last=i == len(children) - 1,
            is_root=False,
            depth=depth + 1,
            max_depth=max_depth,
            rendered=rendered,
            implied=implied,
            parent=name,
        )
