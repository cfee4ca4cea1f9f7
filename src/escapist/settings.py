from __future__ import annotations

import collections.abc
import dataclasses
import json
import logging
import pathlib
import typing

import cattrs
import msgspec
import tomli

from .actions import Computed, Disabled, EscapeAction, FixedSequence
from .combinations import CombinationTable
from .commontypes import ESCAPABLE_MODES, KeyNotationError, Mode, SettingsError
from .durations import format_timeout, parse_timeout, to_seconds

logger = logging.getLogger(__name__)

DEFAULT_MAPPINGS = ("jk",)
# matches the usual key-sequence timeout of modal editors
DEFAULT_TIMEOUT = 1000
DEFAULT_CHECK_MODIFIED = True
DEFAULT_ESCAPE_SEQUENCES = {
    Mode.INSERT: "<BS><BS><ESC>",
    Mode.REPLACE: "<BS><BS><ESC>",
    Mode.TERMINAL: "<BS><BS><C-\\><C-n>",
    Mode.COMMAND_LINE: "<BS><BS><C-c>",
}
SUPPORTED_MODES_DESCRIPTION = ",".join(m.value for m in ESCAPABLE_MODES)


class Diagnostic(msgspec.Struct, frozen=True):
    field: str
    message: str

    def __str__(self):
        return f"[{self.field}] {self.message}"


def _is_escape_action(t):
    return t is EscapeAction or t == typing.Optional[EscapeAction]


def structure_escape_action(value, _typ) -> EscapeAction:
    match value:
        case FixedSequence() | Computed() | Disabled():
            return value
        case False:
            return Disabled()
        case str():
            return FixedSequence(notation=value)
        case _ if callable(value):
            return Computed(callback=value)
    raise ValueError(f"Unexpected escape action {value!r}")


def unstructure_escape_action(action: EscapeAction):
    match action:
        case FixedSequence(notation=notation):
            return notation
        case Disabled():
            return False
        case Computed():
            raise SettingsError("Computed escape actions cannot be written to a settings file")
    raise ValueError(f"Unexpected escape action {action!r}")


settings_converter = cattrs.Converter()
settings_converter.register_structure_hook(Mode, lambda v, _: v if isinstance(v, Mode) else Mode(v))
settings_converter.register_unstructure_hook(Mode, lambda m: m.value)
settings_converter.register_structure_hook_func(_is_escape_action, structure_escape_action)
settings_converter.register_unstructure_hook_func(_is_escape_action, unstructure_escape_action)
for _action_cls in (FixedSequence, Computed, Disabled):
    settings_converter.register_unstructure_hook(_action_cls, unstructure_escape_action)


class _Reporter:
    def __init__(self):
        self.diagnostics: list[Diagnostic] = []

    def __call__(self, field: str, message: str):
        logger.warning("Invalid setting %s: %s", field, message)
        self.diagnostics.append(Diagnostic(field=field, message=message))


def _normalize_mappings(value, report: _Reporter) -> list[str]:
    if isinstance(value, str) or not isinstance(value, collections.abc.Iterable):
        report("mappings", f"Expected a list of two-character strings, not {value!r}; using defaults")
        return list(DEFAULT_MAPPINGS)
    mappings = []
    for mapping in value:
        if not isinstance(mapping, str) or len(mapping) != 2:
            report("mappings", f'The mapping "{mapping}" is not valid!')
            continue
        if mapping not in mappings:
            mappings.append(mapping)
    if not mappings:
        report("mappings", "There are no valid mappings! Using defaults")
        mappings = list(DEFAULT_MAPPINGS)
    return mappings


def _normalize_timeout(value, report: _Reporter) -> int:
    timeout = None
    if isinstance(value, bool):
        pass
    elif isinstance(value, int):
        timeout = value
    elif isinstance(value, float) and value.is_integer():
        timeout = int(value)
    elif isinstance(value, str):
        try:
            timeout = parse_timeout(value)
        except ValueError:
            pass
    if timeout is None:
        report("timeout", f'The value for "timeout" has to be a number, not {value!r}! Using {format_timeout(DEFAULT_TIMEOUT)}')
        return DEFAULT_TIMEOUT
    if timeout <= 0:
        report("timeout", f'The value for "timeout" has to be positive! Using {format_timeout(DEFAULT_TIMEOUT)}')
        return DEFAULT_TIMEOUT
    return timeout


def _normalize_escape_sequences(value, report: _Reporter) -> dict[Mode, typing.Any]:
    escape_sequences: dict[Mode, typing.Any] = dict(DEFAULT_ESCAPE_SEQUENCES)
    if value is None:
        return escape_sequences
    if not isinstance(value, collections.abc.Mapping):
        report("escape_sequences", f"Expected a table of modes, not {value!r}; using defaults")
        return escape_sequences
    for mode_id, seq in value.items():
        mode = mode_id if isinstance(mode_id, Mode) else Mode.from_identifier(str(mode_id))
        if mode is None or not mode.can_escape:
            report(
                f"escape_sequences.{getattr(mode_id, 'value', mode_id)}",
                f"Found escape sequence for not supported mode ({SUPPORTED_MODES_DESCRIPTION})",
            )
            continue
        field = f"escape_sequences.{mode.value}"
        if seq is None:
            continue
        if seq is True or not (isinstance(seq, (str, FixedSequence, Computed, Disabled)) or seq is False or callable(seq)):
            report(field, "Escape sequence has to be either a string, a function or `false`! Using default value")
            continue
        if isinstance(seq, str):
            try:
                FixedSequence(notation=seq)
            except KeyNotationError as exc:
                report(field, f"{exc}. Using default value")
                continue
        escape_sequences[mode] = seq
    return escape_sequences


def normalize_options(options: typing.Optional[collections.abc.Mapping[str, typing.Any]]) -> tuple[dict[str, typing.Any], list[Diagnostic]]:
    """Validate user options, replacing each bad value with its default.

    Never raises for bad values; every replacement is reported as a Diagnostic instead.
    """
    report = _Reporter()
    options = dict(options or {})
    for unknown in sorted(set(options) - {"mappings", "timeout", "check_modified", "escape_sequences"}):
        report(unknown, "Unknown option; ignored")

    check_modified = options.get("check_modified", DEFAULT_CHECK_MODIFIED)
    if not isinstance(check_modified, bool):
        report("check_modified", f'The value for "check_modified" has to be true or false, not {check_modified!r}! Using default value')
        check_modified = DEFAULT_CHECK_MODIFIED

    normalized = {
        "mappings": _normalize_mappings(options.get("mappings", DEFAULT_MAPPINGS), report),
        "timeout": _normalize_timeout(options.get("timeout", DEFAULT_TIMEOUT), report),
        "check_modified": check_modified,
        "escape_sequences": _normalize_escape_sequences(options.get("escape_sequences"), report),
    }
    return normalized, report.diagnostics


@dataclasses.dataclass(kw_only=True, frozen=True)
class Settings:
    mappings: tuple[str, ...]
    timeout: int
    check_modified: bool
    escape_sequences: dict[Mode, EscapeAction]

    @property
    def timeout_seconds(self):
        return to_seconds(self.timeout)

    def combination_table(self):
        return CombinationTable(self.mappings)

    def as_options(self) -> dict[str, typing.Any]:
        return settings_converter.unstructure(self)

    def save(self, dest: pathlib.Path):
        raw = self.as_options()
        with dest.open("w") as out:
            json.dump(raw, out, indent=2)

    @classmethod
    def from_options(cls, options: typing.Optional[collections.abc.Mapping[str, typing.Any]] = None) -> tuple[Settings, list[Diagnostic]]:
        normalized, diagnostics = normalize_options(options)
        return settings_converter.structure(normalized, cls), diagnostics

    @classmethod
    def defaults(cls):
        settings, _ = cls.from_options()
        return settings

    @classmethod
    def load(cls, src: pathlib.Path) -> tuple[Settings, list[Diagnostic]]:
        try:
            if src.suffix == ".toml":
                with src.open("rb") as infile:
                    raw = tomli.load(infile)
            else:
                with src.open() as infile:
                    raw = json.load(infile)
        except (OSError, ValueError) as exc:
            # JSONDecodeError and TOMLDecodeError are both ValueErrors
            raise SettingsError(f"Unable to read settings from {src}: {exc}") from exc
        if not isinstance(raw, dict):
            raise SettingsError(f"Settings in {src} must be a table of options")
        return cls.from_options(raw)

    @classmethod
    def for_test(cls):
        settings, _ = cls.from_options({"mappings": ["jk"], "timeout": 300})
        return settings
