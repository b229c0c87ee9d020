"""
LangGraph orchestrator for Alfred's tools
"""

from alfred.graph.langgraph_agent import GraphAgent, build_graph, to_langchain_tool

__all__ = ["GraphAgent", "build_graph", "to_langchain_tool"]
