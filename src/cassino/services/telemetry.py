from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping


@dataclass
class TelemetryService:
    """Append-only JSONL record of what happened in one game session.

    Every line carries the session id and a running sequence number so a
    game can be rebuilt from the file in order.
    """

    path: Path
    session_id: str
    _seq: int = field(default=0, init=False)

    def log_many(self, events: Iterable[Mapping[str, object]]) -> None:
        lines = []
        ts = datetime.now(tz=timezone.utc).isoformat()
        for event in events:
            self._seq += 1
            body = dict(event)
            lines.append(
                json.dumps(
                    {
                        "ts": ts,
                        "session": self.session_id,
                        "seq": self._seq,
                        "type": body.pop("type", "UNKNOWN"),
                        "payload": body,
                    },
                    ensure_ascii=False,
                )
            )
        if not lines:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def read(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            records = [json.loads(line) for line in f if line.strip()]
        return [r for r in records if r.get("session") == self.session_id]
