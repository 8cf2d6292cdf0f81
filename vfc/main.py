"""
Visual flow compiler (VFC) command-line entrypoint.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from vfc.config import CompilerSettings
from vfc.ir.flow_schema import FlowGraph
from vfc.services.compile_service import CompileService, FlowCompilation


def _load_flow(raw_json: Optional[str], file_path: Optional[str]) -> Tuple[List[Any], List[Any]]:
    if raw_json:
        payload = json.loads(raw_json)
    elif file_path:
        payload = json.loads(Path(file_path).read_text(encoding="utf-8"))
    else:
        raise ValueError("Provide --flow-json or --flow-file.")
    if not isinstance(payload, dict):
        raise ValueError("Flow payload must be a JSON object with 'nodes' and 'edges'.")
    return payload.get("nodes") or [], payload.get("edges") or []


def build_output(compilation: FlowCompilation) -> Dict[str, Any]:
    return {
        "workflow": compilation.workflow.to_payload(),
        **compilation.summary(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Visual flow to voice workflow compiler")
    parser.add_argument("--flow-json", type=str, default=None)
    parser.add_argument("--flow-file", type=str, default=None)
    parser.add_argument("--output-file", type=str, default=None)
    parser.add_argument("--strict", action="store_true")
    parser.add_argument("--log-level", type=str, default=None)
    args = parser.parse_args(argv)

    settings = CompilerSettings.from_env(
        strict_dangling_edges=True if args.strict else None,
        log_level=args.log_level.upper() if args.log_level else None,
    )
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    nodes, edges = _load_flow(args.flow_json, args.flow_file)
    compilation = CompileService(settings=settings).compile(FlowGraph.from_payload(nodes, edges))

    output = json.dumps(build_output(compilation), indent=2)
    print(output)
    if args.output_file:
        Path(args.output_file).write_text(output, encoding="utf-8")
    return 0 if compilation.validation.valid else 1


if __name__ == "__main__":
    sys.exit(main())
