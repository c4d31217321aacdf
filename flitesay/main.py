from __future__ import annotations

import argparse
import sys
from pathlib import Path

from flitesay.application.synthesizer import Synthesizer
from flitesay.application.voice_discovery import load_voice_directory
from flitesay.config import AppConfig
from flitesay.di_container import AppContainer, build_container
from flitesay.domain.errors import (
    InitError,
    PlaybackError,
    SynthesisError,
    VoiceNotFoundError,
    WriteError,
)
from flitesay.domain.voice import DEFAULT_VOICE_NAME
from flitesay.utils.env import load_dotenv
from flitesay.utils.logger import Logger
from flitesay.utils.text import read_message

__version__ = "0.1.0"

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_INIT = 3
EXIT_VOICE = 4
EXIT_SYNTHESIS = 5
EXIT_PLAYBACK = 6
EXIT_OUTPUT = 7


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="flitesay",
        description="A voice synthesis utility.",
    )
    parser.add_argument("message", nargs="?", help="Text to speak. If omitted, read from stdin.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-L",
        "--log-level",
        action="append",
        default=[],
        metavar="[MODULE:]LEVEL",
        help="Level of log output verbosity (repeatable, e.g. debug or flite:debug).",
    )
    parser.add_argument("-V", "--voice", default=None, help="Specifies the voice to synthesize.")
    parser.add_argument(
        "-d",
        "--post-finish-delay",
        type=float,
        default=None,
        metavar="SECONDS",
        help="How long to wait after the buffers drain before exiting (default: 0.15).",
    )
    parser.add_argument(
        "-M",
        "--target-mean",
        type=int,
        default=160,
        help="Affects the pitch of the voice (default: 160).",
    )
    parser.add_argument(
        "-D",
        "--target-stddev",
        type=int,
        default=25,
        help="Affects the vibrato of the voice (default: 25).",
    )
    parser.add_argument(
        "-S",
        "--stretch",
        type=float,
        default=1.0,
        help="Applies a factor to speed up or slow down the voice (default: 1.0).",
    )
    parser.add_argument(
        "--voice-dir",
        default=None,
        help="Directory scanned for .flitevox voice files (default: FLITESAY_VOICE_DIR or '.').",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        default=None,
        help="Write a WAV file instead of playing ('-' for stdout).",
    )
    parser.add_argument("-l", "--list", action="store_true", help="List available voices and exit.")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env). Use empty to disable.",
    )
    return parser.parse_args(argv)


def _emit_to_stderr(line: str) -> None:
    print(line, file=sys.stderr, flush=True)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    load_dotenv(args.env_file)

    try:
        config = AppConfig.from_env()
        logger = Logger(log_dir=config.log_dir or Path("logs"))
        logger.configure([*config.log_levels, *args.log_level])
    except ValueError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    logger.on_emit = _emit_to_stderr
    logger.debug(f"Starting flitesay {__version__}", module="main")

    try:
        return _run(args, config, logger)
    finally:
        if config.log_dir is not None:
            logger.save()


def _run(args: argparse.Namespace, config: AppConfig, logger: Logger) -> int:
    try:
        container = build_container(
            config,
            logger=logger,
            playback=not (args.output or args.list),
        )
    except InitError as exc:
        logger.error(f"failed to create synthesizer: {exc}", module="main")
        return EXIT_INIT
    except PlaybackError as exc:
        logger.error(f"failed to open audio output: {exc}", module="main")
        return EXIT_PLAYBACK

    try:
        return _speak(args, container, logger)
    finally:
        container.registry.release()
        close = getattr(container.audio_sink, "close", None)
        if close is not None:
            close()


def _speak(args: argparse.Namespace, container: AppContainer, logger: Logger) -> int:
    voice_dir = Path(args.voice_dir) if args.voice_dir else container.config.voice_dir
    load_voice_directory(container.registry, voice_dir, only=args.voice, logger=logger)

    if args.list:
        for name in container.registry.voice_names():
            print(name)
        return EXIT_OK

    synth = container.synthesizer
    try:
        synth.set_voice(args.voice or DEFAULT_VOICE_NAME)
    except VoiceNotFoundError as exc:
        logger.error(f"failed to set voice: {exc}", module="main")
        return EXIT_VOICE

    if args.post_finish_delay is not None:
        synth.post_finish_delay = max(args.post_finish_delay, 0.0)
    synth.set_int_feature("int_f0_target_mean", args.target_mean)
    synth.set_int_feature("int_f0_target_stddev", args.target_stddev)
    synth.set_float_feature("duration_stretch", args.stretch)

    message = args.message if args.message is not None else read_message(sys.stdin)
    if not message.strip():
        logger.error("nothing to say: pass a message or pipe text on stdin", module="main")
        return EXIT_USAGE

    if args.output:
        return _write_output(synth, message, args.output, logger)

    try:
        synth.say(message)
    except SynthesisError as exc:
        logger.error(f"failed to synthesize speech: {exc}", module="main")
        return EXIT_SYNTHESIS
    except PlaybackError as exc:
        logger.error(f"failed to play speech: {exc}", module="main")
        return EXIT_PLAYBACK

    return EXIT_OK


def _write_output(synth: Synthesizer, message: str, output: str, logger: Logger) -> int:
    try:
        wave = synth.synthesize(message)
    except SynthesisError as exc:
        logger.error(f"failed to synthesize speech: {exc}", module="main")
        return EXIT_SYNTHESIS

    try:
        if output == "-":
            wave.encode_riff(sys.stdout.buffer)
            sys.stdout.buffer.flush()
        else:
            with open(output, "wb") as fh:
                wave.encode_riff(fh)
    except (OSError, WriteError) as exc:
        logger.error(f"failed to write {output}: {exc}", module="main")
        return EXIT_OUTPUT

    logger.info(f"Wrote {wave.duration:.2f}s of audio to {output}", module="main")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
