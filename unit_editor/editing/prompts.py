"""
Prompt templates for the edit workflow.

Templates use ``string.Template`` placeholders (``$prompt``, ``$files``...)
so JSON examples inside them need no escaping.  Any template can be
replaced by a user file; unreadable files fall back to the default.
"""

from __future__ import annotations

import logging
from string import Template
from typing import Optional

logger = logging.getLogger(__name__)

BRANCH_NAME = """\
You are naming a git branch for the following change request in the
project "$project_name".

Change request:
$prompt

The current branch is "$current_branch".

Reply with ONLY the branch name: lowercase words separated by hyphens,
at most 40 characters, no quotes, no explanation.
"""

CHANGES = """\
You are editing the Go project "$project_name".

Every Go source file has been split into parts stored under the editor
directory.  Each part is one file:

  imports.gopart         package clause and imports
  varsandstructs.gopart  all type, var and const declarations
  <name>.gopart          exactly one function or method

Change request:
$prompt

Current files (JSON array of {"filepath", "content"}):
$files

Reply with ONLY a JSON array of changes, no prose and no code fences:

[
  {"filepath": "editor/main/handleRequest.gopart", "content": "func handleRequest() {\\n}\\n"},
  {"filepath": "editor/main/oldHelper.gopart", "delete": true}
]

Rules:
1. "content" is the COMPLETE new content of the part.
2. To add a function, create a new part named after it.  Place it with
   "insert-before" or "insert-after" set to the name of an existing part
   (without extension), or put a first line
   // insert-before: <part name>   or   // insert-after: <part name>
   in its content.
3. Never put more than one function in a part.
4. Keep imports in imports.gopart and declarations in varsandstructs.gopart.
5. Non-Go files use their normal project path.
"""

CONTINUATION = """\
You are editing the Go project "$project_name".

Change request:
$prompt

Your previous answer was cut off.  These changes were received intact:
$existing_changes

This is the unfinished text that followed them:
$remaining_content

Reply with ONLY a JSON array holding the REMAINING changes, in the same
format, without repeating the changes listed above.
"""

COMMIT_MESSAGE = """\
Write a git commit message for the following change to the project
"$project_name":

$prompt

Reply with ONLY the commit message: a summary line of at most 72
characters, optionally followed by a blank line and a short body.
"""

DEFAULT_TEMPLATES: dict[str, str] = {
    "branch_name": BRANCH_NAME,
    "changes": CHANGES,
    "continuation": CONTINUATION,
    "commit_message": COMMIT_MESSAGE,
}


class PromptLibrary:
    """Resolves prompt templates, honouring per-prompt override files."""

    def __init__(self, overrides: Optional[dict[str, str]] = None) -> None:
        self._overrides = {k: v for k, v in (overrides or {}).items() if v}

    def template(self, name: str) -> str:
        if name not in DEFAULT_TEMPLATES:
            raise KeyError(f"Unknown prompt: {name}")
        path = self._overrides.get(name)
        if path:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return f.read()
            except OSError as exc:
                logger.warning("Could not read prompt file %s (%s); using default",
                               path, exc)
        return DEFAULT_TEMPLATES[name]

    def render(self, name: str, **values: str) -> str:
        return Template(self.template(name)).safe_substitute(**values)
