import argparse
import json
import sys
from typing import Any

from dbtunnel.adapters.json_adapter import JSONAdapter
from dbtunnel.config.settings import get_settings
from dbtunnel.execution.config_executor import ConfigExecutor
from dbtunnel.inference.document_analyzer import DocumentTypeAnalyzer
from dbtunnel.outputs.result_normalizer import ResultNormalizer
from dbtunnel.utils.exceptions import TunnelError


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    GREEN = "\033[32m"


def cprint(text: str, color: str = C.RESET, bold: bool = False, stream=None):
    stream = stream or sys.stderr
    if stream.isatty():
        prefix = (C.BOLD if bold else "") + color
        text = f"{prefix}{text}{C.RESET}"
    print(text, file=stream)


def _print_json(payload: Any):
    print(json.dumps(payload, indent=2, default=str))


# ==================================================
# COMMANDS
# ==================================================

def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("dbtunnel.main:app", host=args.host, port=args.port)
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    settings = get_settings()
    documents = JSONAdapter(args.file, sample_size=args.sample_size).read()
    properties = DocumentTypeAnalyzer(settings.limits).analyze(documents)

    _print_json({
        "documents": len(documents),
        "properties": [p.to_dict() for p in properties],
    })
    return 0


def _cmd_normalize(args: argparse.Namespace) -> int:
    settings = get_settings()
    rows = JSONAdapter(args.file).read()
    normalizer = ResultNormalizer(settings.limits)

    _print_json({
        "columns": [c.to_dict() for c in normalizer.extract_columns(rows)],
        "rows": normalizer.convert_rows(rows),
    })
    return 0


def _cmd_run_config(args: argparse.Namespace) -> int:
    executor = ConfigExecutor(args.config)
    result = executor.execute()

    output = executor.config.get("output")
    if output:
        cprint(f"[DONE] Output written to: {output}", C.GREEN, bold=True)
    else:
        _print_json(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbtunnel",
        description="Database tunnel: schema inference and query normalization",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_cmd_serve)

    analyze = sub.add_parser("analyze", help="Infer a property schema from a JSON/JSONL file")
    analyze.add_argument("file")
    analyze.add_argument("--sample-size", type=int, default=None)
    analyze.set_defaults(func=_cmd_analyze)

    normalize = sub.add_parser("normalize", help="Normalize rows from a JSON/JSONL file")
    normalize.add_argument("file")
    normalize.set_defaults(func=_cmd_normalize)

    run_config = sub.add_parser("run-config", help="Execute a YAML run config")
    run_config.add_argument("config")
    run_config.set_defaults(func=_cmd_run_config)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except TunnelError as e:
        cprint("[FAILED] " + str(e), C.RED, bold=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
