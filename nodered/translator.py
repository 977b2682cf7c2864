"""
Node-RED Wrapper - Flow Translator

Converts a FlowDefinition into the flat node array the Node-RED admin API
works with: a "tab" object for the flow followed by one object per node,
each pointing back at the tab through ``z``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from nodered.exceptions import ValidationError
from nodered.models import FlowDefinition, Node

# Keys the translator writes itself; node properties may not override them.
RESERVED_NODE_KEYS = frozenset({"id", "type", "name", "x", "y", "z", "wires"})

TAB_TYPE = "tab"


class FlowTranslator:
    """
    Translate flows into Node-RED wire format.

    Wires are the canonical edge representation. Any ``connections`` on the
    flow are folded into the source node's wires before translation, so a
    flow built only from connections still deploys with its edges.
    """

    def to_wire(self, flow: FlowDefinition) -> List[Dict[str, Any]]:
        """
        Translate a flow into a flat list of Node-RED objects.

        Args:
            flow: The flow to translate

        Returns:
            List whose first element is the tab object, followed by one
            object per node in order

        Raises:
            ValidationError: If a node property collides with a reserved key
                or a connection names an unknown source node
        """
        wires = self.resolve_wires(flow)

        objects = [self._tab_object(flow)]
        for node, node_wires in zip(flow.nodes, wires):
            objects.append(self._node_object(flow, node, node_wires))
        return objects

    def to_deploy_payload(self, flow: FlowDefinition) -> Dict[str, Any]:
        """
        Build the body for the single-flow ``/flow`` endpoint.

        Node-RED takes the tab fields at the top level and the child nodes
        under ``nodes``; the tab object itself is not repeated.
        """
        wire = self.to_wire(flow)
        tab = wire[0]

        payload: Dict[str, Any] = {
            "id": tab["id"],
            "label": tab["label"],
            "nodes": wire[1:],
        }
        if "info" in tab:
            payload["info"] = tab["info"]
        return payload

    def resolve_wires(self, flow: FlowDefinition) -> List[List[List[str]]]:
        """
        Merge the flow's connections into per-node wire lists.

        Returns one wire list per node, in the order of ``flow.nodes``.
        Node ids are not required to be unique; a connection attaches to
        the first node carrying its source id.
        """
        wires = [[list(port) for port in node.wires] for node in flow.nodes]

        first_index: Dict[str, int] = {}
        for index, node in enumerate(flow.nodes):
            first_index.setdefault(node.id, index)

        for connection in flow.connections:
            index = first_index.get(connection.source)
            if index is None:
                raise ValidationError(
                    f"connection source '{connection.source}' is not a node "
                    f"in flow '{flow.id}'",
                    field="connections",
                )
            ports = wires[index]
            while len(ports) <= connection.source_port:
                ports.append([])
            if connection.target not in ports[connection.source_port]:
                ports[connection.source_port].append(connection.target)

        return wires

    def _tab_object(self, flow: FlowDefinition) -> Dict[str, Any]:
        tab: Dict[str, Any] = {
            "id": flow.id,
            "type": TAB_TYPE,
            "label": flow.name,
        }
        if flow.description:
            tab["info"] = flow.description
        return tab

    def _node_object(
        self,
        flow: FlowDefinition,
        node: Node,
        wires: List[List[str]],
    ) -> Dict[str, Any]:
        obj: Dict[str, Any] = {
            "id": node.id,
            "type": node.type,
            "name": node.name,
            "x": node.position.x,
            "y": node.position.y,
            "z": flow.id,
            "wires": wires,
        }

        for key, value in node.properties.items():
            if key in RESERVED_NODE_KEYS:
                raise ValidationError(
                    f"node '{node.id}' property '{key}' collides with a reserved key",
                    field="properties",
                )
            obj[key] = value

        return obj
