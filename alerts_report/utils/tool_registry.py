"""
Simple Tool Registry
Holds the report stages so the agent can look them up by name
"""

from typing import Dict, Any, Optional
from abc import ABC, abstractmethod


class Tool(ABC):
    """Base class for tools"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, **kwargs) -> Any:
        """Execute the tool with given parameters"""
        pass


class ToolRegistry:
    """Registry of report tools keyed by name"""

    def __init__(self):
        self.tools: Dict[str, Tool] = {}

    def add_tool(self, tool: Tool):
        """Add a tool to the registry"""
        self.tools[tool.name] = tool

    def get_tool(self, name: str) -> Optional[Tool]:
        """Get a tool by name"""
        return self.tools.get(name)

    def require_tool(self, name: str) -> Tool:
        """Get a tool by name, failing if it was never registered"""
        tool = self.tools.get(name)
        if tool is None:
            raise KeyError(f"Tool not registered: {name}")
        return tool
