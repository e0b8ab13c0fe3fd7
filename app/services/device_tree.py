from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from app.state import Device, InventoryPayload, ListGroup, TreeNode

logger = logging.getLogger(__name__)

ROOT_LABEL = "root"


def parse_inventory(document: Any) -> InventoryPayload:
    """
    Turn a `jsonlist` reply into ordered ListGroups.

    Accepts the raw reply text, the decoded `{"Results": [...]}` object, or a bare
    list of results. Anything that is not a mapping is dropped; never raises.
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as e:
            logger.warning("Inventory is not valid JSON: %s", e)
            return []

    if isinstance(document, Mapping):
        results = document.get("Results")
    else:
        results = document
    if not isinstance(results, list):
        return []

    groups: InventoryPayload = []
    for result in results:
        if not isinstance(result, Mapping):
            continue
        name = result.get("list")
        raw_devices = result.get("devices")
        devices = [
            Device(name=str(raw.get("NAME", "")), attributes=raw)
            for raw in (raw_devices if isinstance(raw_devices, list) else [])
            if isinstance(raw, Mapping)
        ]
        groups.append(ListGroup(name=name if isinstance(name, str) else None, devices=devices))
    return groups


def build_tree(payload: Iterable[ListGroup]) -> TreeNode:
    """Build the device tree; unnamed groups are left out, order is kept."""
    root = TreeNode(label=ROOT_LABEL, expanded=True, is_leaf=False)
    for group in payload:
        if not group.name:
            continue
        if group.devices:
            node = TreeNode(label=group.name, expanded=True, is_leaf=False)
            node.children = [
                TreeNode(label=device.name, is_leaf=True, payload=device)
                for device in group.devices
            ]
        else:
            node = TreeNode(label=group.name, is_leaf=True)
        root.children.append(node)
    return root


def to_ui_nodes(root: TreeNode) -> tuple[list[dict], dict[str, TreeNode]]:
    """
    Convert the tree to ui.tree node dicts.

    Ids are index paths ("0", "0/1") so they stay unique when labels repeat.
    Returns (nodes, index) where index maps every id back to its TreeNode.
    """
    index: dict[str, TreeNode] = {}

    def _convert(node: TreeNode, node_id: str) -> dict:
        index[node_id] = node
        item: dict = {"id": node_id, "label": node.label}
        if not node.is_leaf:
            item["children"] = [
                _convert(child, f"{node_id}/{i}") for i, child in enumerate(node.children)
            ]
        return item

    nodes = [_convert(child, str(i)) for i, child in enumerate(root.children)]
    return nodes, index


def expanded_ids(index: Mapping[str, TreeNode]) -> list[str]:
    return [node_id for node_id, node in index.items() if node.expanded and not node.is_leaf]


def count_devices(root: TreeNode) -> int:
    return sum(1 for group in root.children for child in group.children if child.payload is not None)
