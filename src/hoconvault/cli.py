"""``hocon-keystore``: manage keystore secrets referenced by HOCON configs.

::

    hocon-keystore --keystore FILE --password PW [options] <command> <argument>

Commands that change the store (``put``, ``del``, ``generate``, ``upsert``,
``update``) save it back to ``--keystore`` once they succeed. ``redact`` and
``reveal`` print the resulting config, or atomically replace the config file
with ``--replace-config``.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, NoReturn, TextIO

from hoconvault import _fs
from hoconvault.errors import (
    ArgumentError,
    HoconVaultError,
    InvalidEntryError,
    SettingsError,
    UnknownCommandError,
    walk_exception_chain,
)
from hoconvault.hocon import Config, RenderOptions
from hoconvault.keystore import KeyStoreEditor, KeyStoreType
from hoconvault.settings import resolve_settings

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from hoconvault.settings import FrozenSettings

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_OPTIONS_ERROR = 3
EXIT_WRONG_NUMBER_OF_ARGUMENTS = 4
EXIT_UNHANDLED_EXCEPTION = 4

COMMANDS = ("get", "put", "del", "generate", "upsert", "update", "redact", "reveal")

_COMMAND_HELP = """\
commands:
  get <key>              print an entry
  put <key>=<value>      insert or replace an entry
  del <key>              delete an entry
  generate <alias>       generate a secret key (see --key-alg, --key-size)
  upsert <config>        insert or update entries from a config file
  update <config>        update existing entries from a config file
  redact <config>        replace stored values in a config with *****
  reveal <config>        replace ***** in a config with stored values
"""


class ToolArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that raises ``ArgumentError`` instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentError(message)


def build_parser() -> ToolArgumentParser:
    from hoconvault import __version__

    parser = ToolArgumentParser(
        prog="hocon-keystore",
        description=f"HOCON Keystore Tool {__version__}",
        epilog=_COMMAND_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--keystore", required=True, type=Path, help="key store file")
    parser.add_argument("--password", required=True, help="key store password")
    parser.add_argument(
        "--store-type",
        default=None,
        help="jks, jceks or pkcs12; overrides the type deduced from the file name",
    )
    parser.add_argument("--create", action="store_true", help="start a new, empty key store")
    parser.add_argument(
        "--replace-config",
        action="store_true",
        help="replace the config file for redact and reveal instead of printing",
    )
    parser.add_argument(
        "--json", action="store_true", default=None, help="print configs as JSON"
    )
    parser.add_argument("--key-alg", default=None, help="secret key algorithm for generate")
    parser.add_argument(
        "--key-size", type=int, default=None, help="secret key size in bits for generate"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="log more (repeat for debug)"
    )
    parser.add_argument("arguments", nargs="*", metavar="<command> <argument>")
    return parser


def resolve_store_type(
    path: str | Path,
    explicit: KeyStoreType | None = None,
    default: KeyStoreType | None = None,
) -> KeyStoreType:
    """Pick the store type: explicit flag, then file extension, then default.

    A flag that disagrees with a recognised extension wins but is logged.
    """
    inferred = KeyStoreType.from_filename(path)
    if explicit is not None:
        if inferred.is_supported and inferred is not explicit:
            logger.warning(
                "Store type %s overrides the %s type implied by %s",
                explicit.value,
                inferred.value,
                path,
            )
        return explicit
    if inferred.is_supported:
        return inferred
    return default or KeyStoreType.JCEKS


def configure_logging(level_name: str, verbosity: int = 0) -> None:
    level = logging.getLevelNamesMapping()[level_name]
    if verbosity >= 2:
        level = min(level, logging.DEBUG)
    elif verbosity == 1:
        level = min(level, logging.INFO)
    logging.basicConfig(
        level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s"
    )


class KeyStoreTool:
    """Run one command against an open key store."""

    def __init__(
        self,
        keystore: str | Path,
        editor: KeyStoreEditor,
        command: str,
        argument: str,
        *,
        replace: bool = False,
        json_output: bool = False,
        key_alg: str = "HmacSHA256",
        key_size: int = 2048,
        out: TextIO | None = None,
    ) -> None:
        self.keystore = Path(keystore)
        self.editor = editor
        self.command = command
        self.argument = argument
        self.replace = replace
        self.json_output = json_output
        self.key_alg = key_alg
        self.key_size = key_size
        self.out = out if out is not None else sys.stdout

    def run(self) -> None:
        handlers: dict[str, Callable[[], None]] = {
            "get": self._get,
            "put": self._put,
            "del": self._del,
            "generate": self._generate,
            "upsert": lambda: self._manage_keystore(self.editor.upsert),
            "update": lambda: self._manage_keystore(self.editor.update),
            "redact": lambda: self._manage_config(self.editor.redact),
            "reveal": lambda: self._manage_config(self.editor.reveal),
        }
        handler = handlers.get(self.command)
        if handler is None:
            raise UnknownCommandError(self.command, known=COMMANDS)
        logger.debug("Running %s on %s", self.command, self.keystore)
        handler()

    # --- Commands ---

    def _get(self) -> None:
        value = self.editor.get(self.argument)
        self.out.write(f"{value if value is not None else ''}\n")

    def _put(self) -> None:
        key, sep, value = self.argument.partition("=")
        if not sep or not key:
            raise ArgumentError(
                "Expected a key and value separated by an equals sign",
                hint="put <key>=<value>",
            )
        self.editor.put(key, value).to(self.keystore)

    def _del(self) -> None:
        self.editor.delete(self.argument).to(self.keystore)

    def _generate(self) -> None:
        self.editor.generate(self.argument, self.key_alg, self.key_size).to(self.keystore)

    def _manage_keystore(self, callback: Callable[[Config], object]) -> None:
        callback(self._config())
        self.editor.to(self.keystore)

    def _manage_config(self, callback: Callable[[Config], Config]) -> None:
        rendered = self._render(callback(self._config()))
        if self.replace:
            _fs.atomic_write_text(self.argument, rendered + "\n")
            logger.info("Replaced config file %s", self.argument)
        else:
            self.out.write(rendered + "\n")

    # --- Helpers ---

    def _config(self) -> Config:
        return Config.parse_file(self.argument)

    def _render(self, config: Config) -> str:
        return config.render(RenderOptions.for_output(json=self.json_output))


def _open_editor(
    args: argparse.Namespace, store_type: KeyStoreType, settings: FrozenSettings
) -> KeyStoreEditor:
    if args.create:
        return KeyStoreEditor.create(
            args.password, store_type, iterations=settings.kdf_iterations
        )
    return KeyStoreEditor.from_path(args.keystore, args.password, store_type)


def _parse_store_type(value: str | None) -> KeyStoreType | None:
    if value is None:
        return None
    try:
        store_type = KeyStoreType.parse(value)
    except ValueError as exc:
        raise ArgumentError(str(exc)) from exc
    if not store_type.is_supported:
        raise ArgumentError(f"Unsupported store type '{value}'")
    return store_type


def print_error(exc: BaseException, err: TextIO) -> None:
    """Write the causal chain as ``Name: 'message'`` lines, then any hint."""
    hint = None
    for cur in walk_exception_chain(exc):
        err.write(f"{type(cur).__name__}: '{cur}'\n")
        if hint is None and isinstance(cur, HoconVaultError):
            hint = cur.hint
    if hint:
        err.write(f"hint: {hint}\n")


def _print_help(parser: argparse.ArgumentParser, err: TextIO) -> None:
    err.write("\n")
    parser.print_help(err)


def main(
    argv: Sequence[str] | None = None,
    *,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    """Entry point for ``hocon-keystore``; returns the process exit code."""
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr
    parser = build_parser()

    try:
        args = parser.parse_intermixed_args(argv)
        if len(args.arguments) != 2:
            err.write("There should be exactly one command and one argument!\n")
            _print_help(parser, err)
            return EXIT_WRONG_NUMBER_OF_ARGUMENTS

        command, argument = args.arguments
        if command not in COMMANDS:
            raise UnknownCommandError(command, known=COMMANDS)

        explicit_type = _parse_store_type(args.store_type)
        settings = resolve_settings(
            {
                "key_alg": args.key_alg,
                "key_size": args.key_size,
                "json_output": args.json,
            }
        )
        configure_logging(settings.log_level, args.verbose)

        store_type = resolve_store_type(args.keystore, explicit_type, settings.store_type)
        tool = KeyStoreTool(
            args.keystore,
            _open_editor(args, store_type, settings),
            command,
            argument,
            replace=args.replace_config,
            json_output=settings.json_output,
            key_alg=settings.key_alg,
            key_size=settings.key_size,
            out=out,
        )
        tool.run()
    except (ArgumentError, SettingsError, InvalidEntryError) as exc:
        print_error(exc, err)
        _print_help(parser, err)
        return EXIT_OPTIONS_ERROR
    except Exception as exc:
        logger.debug("Command failed", exc_info=True)
        print_error(exc, err)
        return EXIT_UNHANDLED_EXCEPTION
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
