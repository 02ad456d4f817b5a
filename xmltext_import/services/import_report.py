from __future__ import annotations

import enum
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

MAX_DETAIL_ROWS = 2000


class ImportOutcome(str, enum.Enum):
    IMPORTED = "imported"
    SKIPPED_DRY_RUN = "skipped_dry_run"
    SKIPPED_NO_MATCH = "skipped_no_match"
    SKIPPED_UNRECOGNIZED_FILENAME = "skipped_unrecognized_filename"
    SKIPPED_VALIDATION_FAILED = "skipped_validation_failed"
    SKIPPED_LOAD_FAILED = "skipped_load_failed"


@dataclass
class ImportFileResult:
    filename: str
    status: ImportOutcome
    message: str
    code: str | None = None
    address: str | None = None
    validation: str | None = None
    diagnostics: list[str] = field(default_factory=list)


def now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass
class ImportReport:
    started_at: str
    finished_at: str
    args: dict[str, Any]
    dry_run: bool = False
    total_files: int = 0
    filtered: int = 0
    counts: dict[str, int] = field(default_factory=lambda: {o.value: 0 for o in ImportOutcome})
    results: list[ImportFileResult] = field(default_factory=list)

    def add(self, item: ImportFileResult) -> None:
        self.results.append(item)
        self.counts[item.status.value] += 1

    def count(self, outcome: ImportOutcome) -> int:
        return self.counts[outcome.value]

    def finish(self) -> None:
        self.finished_at = now_iso()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "args": self.args,
            "dry_run": self.dry_run,
            "summary": {
                "total_files": self.total_files,
                "filtered": self.filtered,
                **self.counts,
            },
            "results": [{**asdict(row), "status": row.status.value} for row in self.results],
        }

    def to_text(self) -> str:
        lines: list[str] = []
        lines.append("# ezxmltext Import Report")
        lines.append(f"- started_at: {self.started_at}")
        lines.append(f"- finished_at: {self.finished_at}")
        lines.append(f"- dry_run: {self.dry_run}")
        lines.append(f"- total_files: {self.total_files}")
        lines.append(f"- filtered: {self.filtered}")
        for outcome in ImportOutcome:
            lines.append(f"- {outcome.value}: {self.count(outcome)}")
        lines.append("")
        lines.append("## Details")

        if not self.results:
            lines.append("- no rows")
            return "\n".join(lines) + "\n"

        for row in self.results[:MAX_DETAIL_ROWS]:
            lines.append(
                f"- [{row.status.value}] file={row.filename} "
                f"address={row.address or '-'} code={row.code or '-'} msg={row.message}"
            )
            for diagnostic in row.diagnostics:
                lines.append(f"  - {diagnostic}")
        if len(self.results) > MAX_DETAIL_ROWS:
            lines.append(f"- ... truncated {len(self.results) - MAX_DETAIL_ROWS} rows")

        return "\n".join(lines) + "\n"

    def summary_line(self) -> str:
        parts = [f"total={self.total_files}", f"filtered={self.filtered}"]
        parts.extend(f"{outcome.value}={self.count(outcome)}" for outcome in ImportOutcome)
        return "import summary " + " ".join(parts)


def write_report(report: ImportReport, path_str: str, as_json: bool) -> None:
    if not path_str:
        return
    path = Path(path_str)
    path.parent.mkdir(parents=True, exist_ok=True)
    if as_json:
        path.write_text(json.dumps(report.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    else:
        path.write_text(report.to_text(), encoding="utf-8")
