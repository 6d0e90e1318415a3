"""
Tournament result artifacts.

A batch's stats are exported together with provenance for both policies
(registry name, defining module, sha256 of its source) and the interpreter
version, so a saved result can be matched with the code that produced it.
"""
from __future__ import annotations

import json
import platform
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .policies import policy_fingerprint
from .tournament import BatchStats, FairStats, TournamentConfig

SCHEMA_VERSION = 1


def tournament_to_dict(
    stats: BatchStats | FairStats,
    config: TournamentConfig | None = None,
    *,
    metadata: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """
    Serialize batch results to a JSON-compatible dict.

    Args:
        stats: Result of ``run_batch`` or ``run_batch_fair``.
        config: Optional config snapshot to embed.
        metadata: Optional extra metadata.

    Returns:
        Dict with schema_version, exported_at, provenance, stats and optional
        config / metadata.
    """
    result: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "provenance": {
            "policy_a": policy_fingerprint(stats.policy_a),
            "policy_b": policy_fingerprint(stats.policy_b),
            "python": platform.python_version(),
        },
        "fair": isinstance(stats, FairStats),
        "stats": stats.to_dict(),
    }
    if config is not None:
        result["config"] = asdict(config)
    if metadata:
        result["metadata"] = metadata
    return result


def tournament_to_json(
    stats: BatchStats | FairStats,
    config: TournamentConfig | None = None,
    *,
    metadata: Dict[str, Any] | None = None,
) -> str:
    return json.dumps(tournament_to_dict(stats, config, metadata=metadata), indent=2)


def write_tournament_artifact(
    path: str | Path,
    stats: BatchStats | FairStats,
    config: TournamentConfig | None = None,
    *,
    metadata: Dict[str, Any] | None = None,
) -> Path:
    """Write the artifact as indented JSON, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(tournament_to_json(stats, config, metadata=metadata) + "\n", encoding="utf-8")
    return out


def read_tournament_artifact(path: str | Path) -> Dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported artifact schema_version {version!r} (expected {SCHEMA_VERSION})")
    return data


__all__ = [
    "SCHEMA_VERSION",
    "tournament_to_dict",
    "tournament_to_json",
    "write_tournament_artifact",
    "read_tournament_artifact",
]
