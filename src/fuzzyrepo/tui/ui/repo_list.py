"""Result list widget for fuzzyrepo.

Renders the ranked repositories with the cursor row highlighted. Best match
is the first row.

Modified: 2025-11-20
"""

from typing import List

from rich.text import Text
from textual.widgets import Static

from ...core.models import Affiliation, Repository


_AFFILIATION_TAGS = {
    Affiliation.OWNER: ("own", "green"),
    Affiliation.COLLABORATOR: ("col", "cyan"),
    Affiliation.ORGANIZATION_MEMBER: ("org", "magenta"),
    Affiliation.LOCAL: ("loc", "yellow"),
}


def format_row(repo: Repository, selected: bool = False) -> Text:
    """One result line: affiliation tag, local marker, full name."""
    tag, color = _AFFILIATION_TAGS.get(repo.affiliation, ("???", "white"))
    row = Text()
    row.append("> " if selected else "  ", style="bold")
    row.append(f"{tag} ", style=color)
    row.append("● " if repo.exists_local else "  ", style="green")
    row.append(repo.full_name, style="bold" if selected else "")
    if repo.exists_local and selected:
        row.append(f"  {repo.local_path}", style="dim")
    return row


class RepoList(Static):
    """Scrolling window over the ranked result list."""

    DEFAULT_CSS = """
    RepoList {
        width: 100%;
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs):
        super().__init__("", *args, **kwargs)
        self.repos: List[Repository] = []
        self.cursor = 0
        self.offset_row = 0

    def show(self, repos: List[Repository], cursor: int) -> None:
        """Render ``repos`` with ``cursor`` highlighted."""
        self.repos = repos
        self.cursor = cursor
        self.render_rows()

    def _visible_rows(self) -> int:
        return max(1, self.size.height or 20)

    def render_rows(self) -> None:
        if not self.repos:
            self.update(Text("No repositories match", style="dim"))
            return

        rows = self._visible_rows()
        if self.cursor < self.offset_row:
            self.offset_row = self.cursor
        elif self.cursor >= self.offset_row + rows:
            self.offset_row = self.cursor - rows + 1
        self.offset_row = max(0, min(self.offset_row, max(0, len(self.repos) - rows)))

        text = Text()
        window = self.repos[self.offset_row:self.offset_row + rows]
        for i, repo in enumerate(window, start=self.offset_row):
            if i > self.offset_row:
                text.append("\n")
            text.append_text(format_row(repo, selected=i == self.cursor))
        self.update(text)

    def on_resize(self) -> None:
        self.render_rows()
