from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table
from rich.text import Text

from models import DuplicateGroup, ExtractedItem, MergeResult

PREVIEW_CHARS = 150


class RichDisplayManager:
    """Handles Rich-based progress and result rendering for the CLI."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()
        self.progress: Progress | None = None
        self._task_id = None

    def start(self, description: str) -> None:
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=self.console,
            transient=False,
        )
        self._task_id = self.progress.add_task(description, total=None)
        self.progress.start()

    def stop(self) -> None:
        if self.progress is not None:
            self.progress.stop()
            self.progress = None
            self._task_id = None

    def update(self, current: int, total: int, step: str | None = None) -> None:
        """Progress callback: ``current`` is the 1-based unit being processed."""
        if self.progress is None or self._task_id is None:
            return
        fields = {"total": total, "completed": current - 1}
        if step is not None:
            fields["description"] = escape(step)
        self.progress.update(self._task_id, **fields)

    def show_extracted_items(self, items: list[ExtractedItem]) -> None:
        table = Table(title=f"分析完成，共提取 {len(items)} 个条目（已自动合并相同项）")
        table.add_column("分类")
        table.add_column("标题")
        table.add_column("关键词")
        table.add_column("预览")
        for item in items:
            table.add_row(
                item.category.value,
                Text(item.title),
                Text(", ".join(item.keywords)),
                Text(item.content[:PREVIEW_CHARS]),
            )
        self.console.print(table)

    def show_duplicate_groups(self, groups: list[DuplicateGroup]) -> None:
        if not groups:
            self.console.print("没有发现重复条目！所有条目的标题都是唯一的。")
            return
        total_entries = sum(g.size for g in groups)
        table = Table(
            title=f"发现 {len(groups)} 组重复条目，共 {total_entries} 个条目可合并"
        )
        table.add_column("#", justify="right")
        table.add_column("分类")
        table.add_column("主题")
        table.add_column("条目数", justify="right")
        table.add_column("标题")
        for idx, group in enumerate(groups, 1):
            table.add_row(
                str(idx),
                Text(group.entries[0].category_label),
                Text(group.base_title),
                str(group.size),
                Text("、".join(e.title for e in group.entries)),
            )
        self.console.print(table)

    def show_merge_results(self, results: list[MergeResult]) -> None:
        for result in results:
            style = "green" if result.succeeded else "red"
            self.console.print(
                Text(f"{result.group.base_title}: {result.message}", style=style)
            )
