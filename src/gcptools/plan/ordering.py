"""Order plan actions by dependency tier, then by explicit dependencies within a tier."""

import networkx as nx
from typing import Dict, List
from .models import Action
from ..utils.errors import PlanOrderError
from ..utils.logging import get_logger

logger = get_logger("plan.ordering")


def order_actions(actions: List[Action]) -> List[Action]:
    """
    Bucket actions by tier and topologically sort each bucket.
    
    Creation actions come before modifications, bindings and annotations no
    matter how the descriptor table listed them. Within a tier, ``depends_on``
    edges are honoured and declaration order breaks ties. A dependency on an
    action absent from the list is already satisfied.
    
    Raises:
        PlanOrderError: On duplicate keys, a dependency pointing at a later
            tier, or a dependency cycle
    """
    by_key: Dict[str, Action] = {}
    for action in actions:
        if action.key in by_key:
            raise PlanOrderError(f"Duplicate action key in plan: {action.key}")
        by_key[action.key] = action
    
    ordered: List[Action] = []
    for tier in sorted({action.tier for action in actions}):
        bucket = [action for action in actions if action.tier == tier]
        graph = nx.DiGraph()
        for index, action in enumerate(bucket):
            graph.add_node(action.key, index=index)
        
        for action in bucket:
            for dep in action.depends_on:
                dependency = by_key.get(dep)
                if dependency is None:
                    continue
                if dependency.tier > action.tier:
                    raise PlanOrderError(
                        f"Action '{action.key}' ({action.tier.name}) depends on "
                        f"'{dep}' in later tier {dependency.tier.name}"
                    )
                if dependency.tier == action.tier:
                    graph.add_edge(dep, action.key)
        
        try:
            keys = list(nx.lexicographical_topological_sort(graph, key=lambda k: graph.nodes[k]["index"]))
        except nx.NetworkXUnfeasible:
            cycle = nx.find_cycle(graph)
            raise PlanOrderError(f"Dependency cycle between actions: {cycle}")
        
        ordered.extend(by_key[key] for key in keys)
        logger.debug(f"Tier {tier.name}: {keys}")
    
    return ordered
