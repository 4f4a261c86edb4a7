"""Write small sculpture model directories for tests."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping

# Two triangles mirrored across z = 0. The starboard one is lit, the port one
# carries a dark edge and an unlit panel.
DEFAULT_FILES: dict[str, str] = {
    "general.txt": "name: Test Hull\n",
    "vertexes.txt": "\n".join(
        [
            "1\t0\t0\t1000000",
            "2\t1010000\t0\t1000000",
            "3\t500000\t800000\t1000000",
            "4\t0\t0\t-1000000",
            "5\t1010000\t0\t-1000000",
            "6\t500000\t800000\t-1000000",
        ]
    )
    + "\n",
    "edges.txt": "\n".join(
        [
            "1-2\tdefault\t10.0.0.1#1:0",
            "1-3\treversed\t10.0.0.1#1:100",
            "2-3\tdefault\tuncontrolled",
            "4-5\tdefault\tuncontrolled",
            "4-6\tdark\tuncontrolled",
            "5-6\tdefault\t10.0.0.2#2:0",
        ]
    )
    + "\n",
    "panels.txt": "\n".join(
        [
            "P1\t1-2\t1-3\t2-3\tunflipped\t10.0.0.3#1:0",
            "P2\t4-5\t4-6\t5-6\tflipped\tdefault",
        ]
    )
    + "\n",
    "panel_signal_paths.tsv": "\n".join(
        [
            "Panel\tE0\tE1\tE2\tV0\tV1\tV2\tSignal in vertex",
            "P1\t1-2\t1-3\t2-3\t1\t2\t3\t1",
            "P2\t4-5\t4-6\t5-6\t4\t5\t6\t4",
        ]
    )
    + "\n",
    "striping-instructions.txt": "\n".join(
        [
            "10.0.0.3#1:0",
            "P1 5 L +.+ (widen both) gg -.+",
            "P2 3 R . . .",
        ]
    )
    + "\n",
    "lasers.txt": "L1\t0\t2000000\t0\n",
    "boxes.txt": "\n".join(
        [
            "0 0 100",
            "10 0 100",
            "10 10 100",
            "0 10 100",
            "0 0 200",
            "10 0 200",
            "10 10 200",
            "0 10 200",
        ]
    )
    + "\n",
}


def write_model(root: Path, overrides: Mapping[str, str | None] | None = None) -> Path:
    """Write the default model below *root*.

    *overrides* replaces file contents by name; a ``None`` value omits the file.
    """

    files = dict(DEFAULT_FILES)
    files.update(overrides or {})
    root.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        if content is None:
            continue
        (root / name).write_text(content, encoding="utf-8")
    return root
