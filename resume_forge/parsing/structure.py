from __future__ import annotations

import json
import logging
import re
from typing import Any

from resume_forge.ai.retry import call_with_retry
from resume_forge.ai.types import Attachment, CompletionService, CompletionServiceError
from resume_forge.services.prompts import STRUCTURE_SYSTEM_PROMPT, build_structure_prompt

from .models import DocumentTree, StrategyResult

logger = logging.getLogger(__name__)

MAX_TREE_DEPTH = 8
_VALID_KINDS = {"document", "section", "header", "paragraph", "list", "table"}
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class StructureParseError(ValueError):
    pass


def _strip_code_fences(raw: str) -> str:
    return _CODE_FENCE_RE.sub("", raw.strip()).strip()


def _coerce_node(raw: Any, depth: int) -> DocumentTree | None:
    if isinstance(raw, str):
        text = raw.strip()
        return DocumentTree(kind="paragraph", content=text) if text else None
    if not isinstance(raw, dict):
        return None

    kind = str(raw.get("kind") or raw.get("type") or "paragraph").strip().lower()
    if kind not in _VALID_KINDS:
        kind = "paragraph"

    level = None
    if kind == "header":
        try:
            level = min(6, max(1, int(raw.get("level") or 1)))
        except (TypeError, ValueError):
            level = 1

    content = raw.get("content")
    if content is not None and not isinstance(content, str):
        content = str(content)
    if isinstance(content, str):
        content = content.strip() or None

    children: list[DocumentTree] = []
    raw_children = raw.get("children") or []
    if depth < MAX_TREE_DEPTH and isinstance(raw_children, list):
        for child in raw_children:
            node = _coerce_node(child, depth + 1)
            if node is not None:
                children.append(node)

    if content is None and not children and kind not in {"document", "section"}:
        return None
    return DocumentTree(kind=kind, level=level, content=content, children=children)


def parse_structure_response(raw: str) -> DocumentTree:
    """Build a depth-bounded DocumentTree from a model's JSON answer."""
    try:
        payload = json.loads(_strip_code_fences(raw))
    except json.JSONDecodeError as exc:
        raise StructureParseError(f"structure response is not valid JSON: {exc}") from exc

    if isinstance(payload, list):
        payload = {"kind": "document", "children": payload}
    if not isinstance(payload, dict):
        raise StructureParseError("structure response must be a JSON object")

    root = _coerce_node(payload, depth=0)
    if root is None:
        raise StructureParseError("structure response contained no content")
    if root.kind != "document":
        root = DocumentTree(kind="document", children=[root])
    return root


def iter_nodes(tree: DocumentTree):
    yield tree
    for child in tree.children:
        yield from iter_nodes(child)


def find_nodes(tree: DocumentTree, kind: str) -> list[DocumentTree]:
    return [node for node in iter_nodes(tree) if node.kind == kind]


def tree_to_text(tree: DocumentTree) -> str:
    """Flatten a tree into plain text in document order."""
    lines: list[str] = []

    def visit(node: DocumentTree) -> None:
        if node.kind == "list":
            if node.content:
                lines.extend(f"- {item.strip()}" for item in node.content.splitlines() if item.strip())
            for child in node.children:
                if child.content and not child.children:
                    lines.append(f"- {child.content}")
                else:
                    visit(child)
            return
        if node.content:
            if node.kind == "header" and lines and lines[-1] != "":
                lines.append("")
            lines.append(node.content)
        for child in node.children:
            visit(child)

    visit(tree)
    return "\n".join(lines).strip()


def render_tree(tree: DocumentTree, indent: int = 0) -> str:
    """Human-readable outline of the tree, one node per line."""
    label = tree.kind.upper()
    if tree.level is not None:
        label = f"{label}(h{tree.level})"
    line = "  " * indent + label
    if tree.content:
        preview = tree.content if len(tree.content) <= 60 else f"{tree.content[:57]}..."
        line = f"{line}: {preview}"
    rendered = [line]
    rendered.extend(render_tree(child, indent + 1) for child in tree.children)
    return "\n".join(rendered)


def export_tree_json(tree: DocumentTree) -> str:
    return tree.model_dump_json(exclude_none=True, indent=2)


class VisionStructureStrategy:
    """Asks a vision-capable completion service for the document layout."""

    name = "vision"

    def __init__(self, completion_service: CompletionService) -> None:
        self._service = completion_service

    async def extract(self, content: bytes) -> StrategyResult:
        attachment = Attachment(mime_type="application/pdf", data=content, filename="resume.pdf")

        async def _call() -> str:
            return await self._service.complete(
                build_structure_prompt(),
                system_instruction=STRUCTURE_SYSTEM_PROMPT,
                attachments=[attachment],
                temperature=0.1,
                max_output_tokens=4096,
            )

        try:
            raw = await call_with_retry(_call, label="structure")
            tree = parse_structure_response(raw)
        except (CompletionServiceError, StructureParseError) as exc:
            logger.warning("structure_analysis_failed: %s", exc)
            return StrategyResult(name=self.name, error=f"Structure analysis failed: {exc}")

        return StrategyResult(name=self.name, text=tree_to_text(tree), structure=tree)
