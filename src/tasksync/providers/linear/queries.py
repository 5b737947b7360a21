"""GraphQL documents used by the Linear client."""

from __future__ import annotations

_ISSUE_FIELDS = """
    id
    identifier
    title
    description
    priority
    estimate
    state { id name type color }
    team { id name key }
    assignee { id name }
    creator { id name }
    project { id name }
    createdAt
    updatedAt
    url
"""

VIEWER = """
query Viewer {
  viewer { id name email displayName avatarUrl active }
}
"""

TEAMS = """
query Teams {
  teams { nodes { id name key description icon color } }
}
"""

TEAM = """
query Team($id: String!) {
  team(id: $id) { id name key description icon color }
}
"""

WORKFLOW_STATES = """
query WorkflowStates($teamId: ID!) {
  workflowStates(filter: { team: { id: { eq: $teamId } } }) {
    nodes { id name description color type position team { id } }
  }
}
"""

PROJECTS = """
query Projects($teamId: ID!, $first: Int) {
  projects(filter: { accessibleTeams: { id: { eq: $teamId } } }, first: $first) {
    nodes { id name description state startDate targetDate progress }
  }
}
"""

ISSUES = f"""
query Issues($filter: IssueFilter, $first: Int) {{
  issues(filter: $filter, first: $first) {{
    nodes {{ {_ISSUE_FIELDS} }}
  }}
}}
"""

ISSUE = f"""
query Issue($id: String!) {{
  issue(id: $id) {{ {_ISSUE_FIELDS} }}
}}
"""

ISSUE_CREATE = f"""
mutation IssueCreate($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{
    success
    issue {{ {_ISSUE_FIELDS} }}
  }}
}}
"""

ISSUE_UPDATE = f"""
mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{
    success
    issue {{ {_ISSUE_FIELDS} }}
  }}
}}
"""

ISSUE_DELETE = """
mutation IssueDelete($id: String!) {
  issueDelete(id: $id) { success }
}
"""

WEBHOOK_CREATE = """
mutation WebhookCreate($input: WebhookCreateInput!) {
  webhookCreate(input: $input) {
    success
    webhook { id url label enabled resourceTypes }
  }
}
"""

WEBHOOK_DELETE = """
mutation WebhookDelete($id: String!) {
  webhookDelete(id: $id) { success }
}
"""
