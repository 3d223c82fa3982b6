from __future__ import annotations

SYSTEM_PROMPT = (
  "You are the assistant of a kanban task board. "
  "Always respond with plain JSON only: no markdown, no code fences, no commentary."
)

GENERATE_TEMPLATE = """Analyze the following request (and the attached image, if any) and create a list of specific, actionable tasks.
Respond with ONLY a JSON array where each object has:
- "title": a clear, concise task title (max 50 chars)
- "description": a detailed explanation (max 200 chars)
- "priority": "high", "medium", or "low"
- "estimatedTime": estimated completion time in minutes (a positive number)
- "status": one of {columns} (use "todo" unless the request says otherwise)
- "assigneeName": optional, the full name of the person the request assigns the task to

Example: [{{"title":"Task 1","description":"Description 1","priority":"high","estimatedTime":30,"status":"todo"}}]"""

ASSIGN_TEMPLATE = """The user wants to assign existing tasks to a team member.
Respond with ONLY a JSON object:
{{"assigneeName": "<person's name exactly as written>", "selection": <selection>}}
where <selection> is one of:
- {{"scope": "all"}} for every task on the board
- {{"scope": "column", "column": "<one of {columns}>"}} for every task in one column
- {{"scope": "titles", "titles": ["<task title or distinctive part of it>", ...]}} for named tasks
Current tasks: {task_titles}"""

DELETE_TEMPLATE = """The user wants to delete tasks from the board.
Respond with ONLY a JSON object:
{{"selection": <selection>}}
where <selection> is one of:
- {{"scope": "all"}} for every task on the board
- {{"scope": "column", "column": "<one of {columns}>"}} for every task in one column
- {{"scope": "titles", "titles": ["<task title or distinctive part of it>", ...]}} for named tasks
- {{"scope": "last", "count": N}} for the N most recently created tasks
Current tasks: {task_titles}"""

_TEMPLATES = {
  "generate": GENERATE_TEMPLATE,
  "assign": ASSIGN_TEMPLATE,
  "delete": DELETE_TEMPLATE,
}


def build_prompt(kind: str, request: str, *, columns: list[str], task_titles: list[str]) -> str:
  template = _TEMPLATES[kind]
  titles = ", ".join(f'"{t}"' for t in task_titles[:100]) or "(none)"
  body = template.format(columns=", ".join(f'"{c}"' for c in columns), task_titles=titles)
  return f"{body}\n\nRequest: {request}"
