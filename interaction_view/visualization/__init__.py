from .graph import GraphNode, GraphEdge, NetworkGraphView

__all__ = ['GraphNode', 'GraphEdge', 'NetworkGraphView']
