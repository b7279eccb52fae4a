"""
Dependency Graph Tool
Queries a repository's dependency graph over GraphQL and flattens it into a table
"""

from typing import Any, Dict, List, Optional

import requests

from ..utils.records import Table, get_field, new_table
from ..utils.tool_registry import Tool

DEPENDENCY_HEADER = [
    "manifest",
    "packageName",
    "packageManager",
    "requirements",
    "licenseInfo",
]

# The dependency graph fields are only served with the hawkgirl preview
DEPENDENCY_GRAPH_ACCEPT = "application/vnd.github.hawkgirl-preview+json"

DEPENDENCY_GRAPH_QUERY = """
query($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    name
    licenseInfo {
      name
    }
    dependencyGraphManifests {
      totalCount
      edges {
        node {
          filename
          dependencies {
            edges {
              node {
                packageName
                packageManager
                requirements
                repository {
                  licenseInfo {
                    name
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


class GraphQLError(RuntimeError):
    """Raised when the GraphQL endpoint answers with errors"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


def dependency_rows(repository: Dict[str, Any]) -> List[List[str]]:
    """Flatten manifest and dependency edges into one row per pair"""
    rows = []
    manifests = repository.get("dependencyGraphManifests") or {}
    for manifest in manifests.get("edges") or []:
        manifest_node = manifest.get("node") or {}
        dependencies = manifest_node.get("dependencies") or {}
        for dependency in dependencies.get("edges") or []:
            node = dependency.get("node")
            rows.append(
                [
                    get_field(manifest_node, "filename"),
                    get_field(node, "packageName"),
                    get_field(node, "packageManager"),
                    get_field(node, "requirements"),
                    get_field(node, "repository.licenseInfo.name"),
                ]
            )
    return rows


class DependencyGraphTool(Tool):
    """Tool for reading the dependency graph through the GitHub GraphQL API"""

    def __init__(
        self,
        token: str,
        graphql_url: str = "https://api.github.com/graphql",
        session: Optional[requests.Session] = None,
        timeout: float = 60,
    ):
        super().__init__(
            name="dependency_graph_tool",
            description="List dependency graph manifests, packages and licenses as a table",
        )
        self.token = token
        self.graphql_url = graphql_url
        self.session = session
        self.timeout = timeout
        self.last_repository_license = ""

    def execute(self, **kwargs) -> Any:
        """Execute the dependency graph tool"""
        return self.get_dependency_graph_report(kwargs["owner"], kwargs["repo"])

    def query_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        """Run the dependency graph query and return the repository node"""
        session = self.session or requests.Session()
        try:
            response = session.post(
                self.graphql_url,
                json={
                    "query": DEPENDENCY_GRAPH_QUERY,
                    "variables": {"owner": owner, "name": repo},
                },
                headers={
                    "Authorization": f"bearer {self.token}",
                    "Accept": DEPENDENCY_GRAPH_ACCEPT,
                },
                timeout=self.timeout,
            )
        finally:
            # only close a session this tool opened itself
            if self.session is None:
                session.close()
        response.raise_for_status()

        payload = response.json()
        errors = payload.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            raise GraphQLError(first.get("message", "GraphQL query failed"), errors)

        repository = (payload.get("data") or {}).get("repository")
        if repository is None:
            raise GraphQLError(f"Repository {owner}/{repo} not found")
        return repository

    def get_dependency_graph_report(self, owner: str, repo: str) -> Table:
        """
        Fetch the dependency graph of a repository

        Args:
            owner: Repository owner login
            repo: Repository name

        Returns:
            Table with DEPENDENCY_HEADER followed by one row per
            (manifest, dependency) pair
        """
        repository = self.query_repository(owner, repo)
        self.last_repository_license = get_field(repository, "licenseInfo.name")

        table = new_table(DEPENDENCY_HEADER)
        table.extend(dependency_rows(repository))
        return table
