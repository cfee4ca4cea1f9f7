import argparse
import logging
import pathlib
import sys

import trio

from .commontypes import SettingsError
from .detector import SequenceDetector
from .editor import Buffer, Editor
from .keystreams import Replayer, load_recording
from .settings import Settings

logger = logging.getLogger(__name__)


async def replay(settings: Settings, recording, text: str = ""):
    editor = Editor(Buffer(text))
    detector = SequenceDetector(editor, settings)
    editor.attach(detector)
    send_channel, receive_channel = trio.open_memory_channel(0)
    async with trio.open_nursery() as nursery:
        await nursery.start(detector.run)
        nursery.start_soon(Replayer(recording).pump, send_channel)
        await editor.run(receive_channel)
        nursery.cancel_scope.cancel()
    return editor, detector


replay_parser = argparse.ArgumentParser(prog="escapist-replay")
replay_parser.add_argument("settings", type=pathlib.Path)
replay_parser.add_argument("recording", type=pathlib.Path)
replay_parser.add_argument("--text", type=pathlib.Path, help="initial buffer contents")
replay_parser.add_argument("--debug", action="store_true")


def replay_cli(argv=None):
    args = replay_parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)
    try:
        settings, _diagnostics = Settings.load(args.settings)
    except SettingsError as exc:
        print(exc, file=sys.stderr)
        return 2
    recording = load_recording(args.recording)
    text = args.text.read_text() if args.text is not None else ""
    editor, detector = trio.run(replay, settings, recording, text)
    print(editor.buffer.content())
    print(f"-- mode: {editor.mode.name} modified: {editor.buffer.modified} matches: {detector.matches}")
    for message in editor.messages:
        print(message)
    return 0


check_parser = argparse.ArgumentParser(prog="escapist-check")
check_parser.add_argument("settings", type=pathlib.Path)


def check_cli(argv=None):
    args = check_parser.parse_args(argv)
    logging.basicConfig(level=logging.ERROR)
    try:
        _settings, diagnostics = Settings.load(args.settings)
    except SettingsError as exc:
        print(exc, file=sys.stderr)
        return 2
    for diagnostic in diagnostics:
        print(diagnostic)
    return 1 if diagnostics else 0
