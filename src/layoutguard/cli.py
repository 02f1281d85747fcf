"""CLI entry point for LayoutGuard."""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

from layoutguard import __version__, logger
from layoutguard.exceptions import PackageError, UnknownFileTypeError
from layoutguard.identifiers import IDENTIFIER_TYPES
from layoutguard.layout_store import load_registry
from layoutguard.logging import configure_logging
from layoutguard.orchestrator import validate_lines
from layoutguard.settings import Settings, get_settings
from layoutguard.sharding import validate_lines_sharded
from layoutguard.typing.enums import DataType
from layoutguard.typing.models import FileValidationResult, ValidationOptions

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_COMPLIANT = 2
EXIT_INTERRUPTED = 130

_ID_TYPES = ("curp", "rfc", "nss", "account")


def _as_of_from_cli(value: str) -> date:
    """Convert `--as-of` CLI value into a date.

    Args:
        value (str): CLI value (`YYYY-MM-DD`).

    Raises:
        argparse.ArgumentTypeError: If value is not an ISO date.

    Returns:
        date: Evaluation date.
    """
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--as-of must be a YYYY-MM-DD date") from exc  # noqa: TRY003


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="layoutguard")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    validate_parser = subparsers.add_parser("validate", help="Validate a fixed-width regulatory file")
    validate_parser.add_argument("--input", required=True, type=Path, dest="input_path")
    validate_parser.add_argument("--file-type", default=None, dest="file_type")
    validate_parser.add_argument("--output", type=Path, default=None, dest="output_path")
    validate_parser.add_argument("--as-of", type=_as_of_from_cli, default=None, dest="as_of")
    validate_parser.add_argument("--sharded", action="store_true", dest="sharded")
    validate_parser.add_argument("--rules-path", type=Path, default=None, dest="rules_path")

    check_parser = subparsers.add_parser("check-id", help="Validate a single identifier")
    check_parser.add_argument("--type", required=True, choices=_ID_TYPES, dest="id_type")
    check_parser.add_argument("--as-of", type=_as_of_from_cli, default=None, dest="as_of")
    check_parser.add_argument("value")

    layouts_parser = subparsers.add_parser("layouts", help="List loaded file layouts")
    layouts_parser.add_argument("--rules-path", type=Path, default=None, dest="rules_path")

    return parser


def read_lines(path: Path, encoding: str) -> list[str]:
    """Read the physical lines of a file without their terminators.

    Args:
        path (Path): Input file.
        encoding (str): Text encoding.

    Returns:
        list[str]: Lines in file order.
    """
    with path.open(encoding=encoding) as handle:
        return [line.rstrip("\r\n") for line in handle]


def persist_result(result: FileValidationResult, path: Path) -> None:
    """Persist validation result as JSON.

    Args:
        result (FileValidationResult): Result payload.
        path (Path): Output path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.model_dump_json(indent=2), encoding="utf-8")


def _run_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Validate one file and persist its result.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Raises:
        UnknownFileTypeError: If the file type is neither given nor detectable.

    Returns:
        int: Exit code.
    """
    registry = load_registry(args.rules_path or settings.rules_path)
    input_path: Path = args.input_path
    lines = read_lines(input_path, settings.file_encoding)

    file_type = args.file_type
    if file_type is None:
        first_line = next((line for line in lines if line), None)
        file_type = registry.detect_file_type(first_line, input_path.name)
    if file_type is None:
        raise UnknownFileTypeError(file_type=input_path.name)

    options = ValidationOptions.from_settings(settings, as_of=args.as_of)
    if args.sharded:
        result = validate_lines_sharded(
            file_type,
            lines,
            registry,
            options=options,
            shard_size=settings.shard_size,
            max_workers=settings.max_workers,
        )
    else:
        result = validate_lines(file_type, lines, registry, options=options)

    output_path = args.output_path or Path(settings.results_dir) / f"{input_path.name}.json"
    persist_result(result, output_path)
    logger.info(
        "Validation completed",
        extra={"output_path": str(output_path), "status": str(result.status)},
    )
    return EXIT_OK if result.is_compliant else EXIT_NOT_COMPLIANT


def _run_check_id(args: argparse.Namespace) -> int:
    """Print the verdict for one identifier.

    Args:
        args (argparse.Namespace): Parsed CLI args.

    Returns:
        int: Exit code.
    """
    validator = IDENTIFIER_TYPES[DataType.from_str(args.id_type)]
    failure = validator.check(args.value, as_of=args.as_of)
    if failure is None:
        print(f"{validator.label} {validator.normalize(args.value)}: valid")  # noqa: T201
        return EXIT_OK
    print(f"{validator.label} {args.value!r}: invalid ({failure})")  # noqa: T201
    return EXIT_NOT_COMPLIANT


def _run_layouts(args: argparse.Namespace, settings: Settings) -> int:
    """Print the loaded layouts.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        int: Exit code.
    """
    registry = load_registry(args.rules_path or settings.rules_path)
    for file_type in registry.file_types:
        schema = registry.get(file_type)
        line_lengths = sorted({record.line_length for record in schema.records})
        print(  # noqa: T201
            f"{file_type}\t{schema.code}\t{','.join(str(length) for length in line_lengths)}"
            f"\t{len(schema.rules)} rules\t{schema.name}",
        )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments, defaults to `sys.argv`.

    Returns:
        int: Exit code (0 compliant, 2 validation errors, 1 failure, 130 interrupted).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        if args.command == "validate":
            return _run_validate(args, settings)
        if args.command == "check-id":
            return _run_check_id(args)
        return _run_layouts(args, settings)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("Command aborted by user", extra={"command": args.command})
        return EXIT_INTERRUPTED
    except Exception:
        logger.exception("Unexpected error", extra={"command": args.command})
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
