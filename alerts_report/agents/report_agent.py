"""
Security Alerts Report Agent
Fetches code scanning alerts and the dependency graph of a repository and
writes them, with their pivot summaries, into one workbook
"""

from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional

from github import Auth, Github
from rich.console import Console

from ..config.config_manager import (
    SHEET_CODE_SCANNING,
    SHEET_DEPENDENCIES,
    ConfigManager,
    RepositoryIdentity,
)
from ..tools.code_scanning_tool import CodeScanningTool
from ..tools.dependency_graph_tool import DependencyGraphTool
from ..tools.pivot import PivotTool
from ..tools.workbook_tool import WorkbookTool
from ..utils.records import Table
from ..utils.tool_registry import ToolRegistry


class StageError(Exception):
    """Wraps the first failure of a run together with the stage it came from"""

    def __init__(self, stage: str, error: BaseException):
        super().__init__(str(error))
        self.stage = stage
        self.error = error


class ReportAgent:
    """
    Runs the report as a fixed sequence of stages

    resolve_identity -> fetch_alerts -> fetch_dependencies -> pivot ->
    assemble_workbook. The first failing stage stops the run, so the
    workbook is only written once every table is available.
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        tools: Optional[ToolRegistry] = None,
        console: Optional[Console] = None,
    ):
        """Initialize the agent with configuration"""
        self.config_manager = config_manager
        self.report_config = config_manager.get_report_config()
        self.console = console or Console(stderr=True)
        self._tools = tools
        self.warnings: List[str] = []

    @property
    def tools(self) -> ToolRegistry:
        if self._tools is None:
            self._tools = self._setup_tools()
        return self._tools

    def _setup_tools(self) -> ToolRegistry:
        """Setup the report tools against the GitHub APIs"""
        token = self.config_manager.get_token()
        github = Github(
            auth=Auth.Token(token),
            base_url=self.report_config.api_url,
            per_page=self.report_config.per_page,
            timeout=int(self.report_config.timeout),
        )

        tools = ToolRegistry()
        tools.add_tool(CodeScanningTool(github))
        tools.add_tool(
            DependencyGraphTool(
                token,
                graphql_url=self.report_config.graphql_url,
                timeout=self.report_config.timeout,
            )
        )
        tools.add_tool(PivotTool())
        tools.add_tool(WorkbookTool(self.report_config.output_path))
        return tools

    def _stage(self, name: str, step: Callable[[], Any]) -> Any:
        try:
            return step()
        except Exception as e:
            raise StageError(name, e) from e

    def _execute(self, stage: str, tool_name: str, **kwargs) -> Any:
        return self._stage(
            stage, lambda: self.tools.require_tool(tool_name).execute(**kwargs)
        )

    def warn(self, message: str):
        self.warnings.append(message)
        self.console.print(f"Warning: {message}", style="yellow", markup=False)

    def resolve_identity(self) -> RepositoryIdentity:
        identity = self.config_manager.resolve_repository()
        if identity.source == "env":
            self.warn(
                f"No repository in the event context, "
                f"using GITHUB_REPOSITORY ({identity.full_name})"
            )
        return identity

    def build_pivots(self, tables: Dict[str, Table]) -> Dict[str, Table]:
        """Apply every configured pivot to its source table"""
        pivot_tool = self.tools.require_tool("pivot_tool")
        return OrderedDict(
            (spec.sheet_name, pivot_tool.execute(table=tables[spec.source], spec=spec))
            for spec in self.report_config.pivots
        )

    def run(self) -> Dict[str, Any]:
        """
        Generate the workbook

        Returns:
            {"status": "success", ...} with the output path and per-sheet row
            counts, or {"status": "error", "stage": ..., "error": ...}
        """
        try:
            identity = self._stage("resolve_identity", self.resolve_identity)
            owner, repo = identity.owner, identity.name

            alerts = self._execute(
                "fetch_alerts", "code_scanning_tool", owner=owner, repo=repo
            )
            dependencies = self._execute(
                "fetch_dependencies", "dependency_graph_tool", owner=owner, repo=repo
            )

            sheets: Dict[str, Table] = OrderedDict()
            sheets[SHEET_CODE_SCANNING] = alerts
            sheets[SHEET_DEPENDENCIES] = dependencies
            sheets.update(self._stage("pivot", lambda: self.build_pivots(sheets)))

            output_path = self._execute("assemble_workbook", "workbook_tool", sheets=sheets)
        except StageError as e:
            return {
                "status": "error",
                "stage": e.stage,
                "error": str(e),
                "exception": e.error,
                "warnings": list(self.warnings),
            }

        return {
            "status": "success",
            "repository": identity.full_name,
            "output_path": str(output_path),
            "sheets": OrderedDict((name, len(table)) for name, table in sheets.items()),
            "repository_license": getattr(
                self.tools.get_tool("dependency_graph_tool"), "last_repository_license", ""
            ),
            "warnings": list(self.warnings),
        }
