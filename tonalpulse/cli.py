"""
Command line interface for the TPL codec.

    tonalpulse encode "motor start left fast" --prefix COMMAND
    tonalpulse decode "a/ aAi eAa iAa oEo"
    tonalpulse export "a/ aAi eAa" -o motor.wav --preset deep
    tonalpulse receive motor.wav --preset deep
    tonalpulse listen
    tonalpulse serve --port 5000
"""

import argparse
import logging
import sys
import threading

from .tpl import Synthesizer, decode, encode, estimate_duration
from .tpl.profiles import DEFAULT_PRESET, FREQUENCY_PRESETS, get_alphabet
from .tpl.vocabulary import DEFAULT_PREFIX, PREFIXES, VOCABULARY, search_vocabulary
from .tpl.wav import export_filename

logger = logging.getLogger('tonalpulse')


def setup_logging(verbosity: int) -> logging.Logger:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S',
        stream=sys.stderr,
    )
    logger.debug("Logging initialized verbosity=%d", verbosity)
    return logger


def _written(args) -> str:
    """Positional input is a written form unless --text was given."""
    if args.text:
        result = encode(args.input, args.prefix)
        if result.unknown_words:
            logger.warning("Unknown words skipped: %s", ', '.join(result.unknown_words))
        return result.written_form
    return args.input


def cmd_encode(args) -> int:
    result = encode(args.input, args.prefix)
    print(result.written_form)
    if result.unknown_words:
        print(f"unknown: {', '.join(result.unknown_words)}", file=sys.stderr)
    if result.is_empty:
        print('nothing to transmit', file=sys.stderr)
    return 0


def cmd_decode(args) -> int:
    print(decode(args.input))
    return 0


def cmd_export(args) -> int:
    written = _written(args)
    filename = args.output or export_filename(written)
    synthesizer = Synthesizer(get_alphabet(args.preset), sample_rate=args.sample_rate)
    synthesizer.to_wav(written, filename)
    print(f"{filename} ({estimate_duration(written):.2f}s)")
    return 0


def cmd_play(args) -> int:
    from .audio import play

    written = _written(args)
    synthesizer = Synthesizer(get_alphabet(args.preset))
    play(synthesizer, synthesizer.synthesize(written))
    return 0


def cmd_receive(args) -> int:
    from .receiver import receive_wav

    result = receive_wav(args.file, get_alphabet(args.preset), resolve_duration=args.resolve_duration)
    print(result.written_form)
    print(result.text)
    return 0


def cmd_listen(args) -> int:
    from .audio import microphone_frames
    from .receiver import ReceiverSession
    from .receiver.session import build_demodulator

    alphabet = get_alphabet(args.preset)
    demodulator = build_demodulator(alphabet, args.sample_rate, resolve_duration=args.resolve_duration)

    def on_flush(group):
        print(f"{group}  ->  {decode(group)}", flush=True)

    session = ReceiverSession(
        demodulator,
        on_tone=lambda tone: logger.info("tone %s %d Hz", tone.band, tone.frequency),
        on_flush=on_flush,
    )
    stop = threading.Event()
    print('Listening... press Ctrl+C to stop.', file=sys.stderr)
    try:
        with microphone_frames(sample_rate=args.sample_rate, stop=stop) as frames:
            session.run(frames)
    except KeyboardInterrupt:
        stop.set()
    print(demodulator.written_form)
    return 0


def cmd_vocab(args) -> int:
    for entry in search_vocabulary(args.query or '', args.category):
        print(f"{entry['code']}  {entry['word']:<12} {entry['category']}")
    return 0


def cmd_serve(args) -> int:
    from .web import create_app

    app = create_app({'TPL_PRESET': args.preset})
    app.run(debug=args.debug, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tonalpulse', description='Tonal Pulse Language codec')
    parser.add_argument('-v', '--verbose', action='count', default=0, help='-v info, -vv debug')
    sub = parser.add_subparsers(dest='command', required=True)

    def add_preset(p):
        p.add_argument('--preset', default=DEFAULT_PRESET, choices=sorted(FREQUENCY_PRESETS))

    def add_input(p):
        p.add_argument('input', help='written form, or text with --text')
        p.add_argument('--text', action='store_true', help='encode input as text first')
        p.add_argument('--prefix', default=DEFAULT_PREFIX, choices=sorted(PREFIXES))

    p = sub.add_parser('encode', help='text to written form')
    p.add_argument('input')
    p.add_argument('--prefix', default=DEFAULT_PREFIX, choices=sorted(PREFIXES))
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser('decode', help='written form to text')
    p.add_argument('input')
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser('export', help='written form to WAV file')
    add_input(p)
    add_preset(p)
    p.add_argument('-o', '--output')
    p.add_argument('--sample-rate', type=int, default=44100)
    p.set_defaults(func=cmd_export)

    p = sub.add_parser('play', help='play a written form on the speaker')
    add_input(p)
    add_preset(p)
    p.set_defaults(func=cmd_play)

    p = sub.add_parser('receive', help='demodulate a WAV recording')
    p.add_argument('file')
    add_preset(p)
    p.add_argument('--resolve-duration', action='store_true', help='recover long symbols')
    p.set_defaults(func=cmd_receive)

    p = sub.add_parser('listen', help='demodulate the microphone until Ctrl+C')
    add_preset(p)
    p.add_argument('--sample-rate', type=int, default=44100)
    p.add_argument('--resolve-duration', action='store_true', help='recover long symbols')
    p.set_defaults(func=cmd_listen)

    p = sub.add_parser('vocab', help='search the vocabulary')
    p.add_argument('query', nargs='?')
    p.add_argument('--category', choices=list(VOCABULARY))
    p.set_defaults(func=cmd_vocab)

    p = sub.add_parser('serve', help='run the HTTP API')
    add_preset(p)
    p.add_argument('--host', default='127.0.0.1')
    p.add_argument('--port', type=int, default=5000)
    p.add_argument('--debug', action='store_true')
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return args.func(args)
    except (ValueError, RuntimeError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
