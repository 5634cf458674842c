#!/usr/bin/env python3
"""
Voicebank Installer - Main CLI Entry Point
==========================================
Unified CLI for voicebank import operations.

Usage:
    voicebank install ./teto.zip -o ./Singers
    voicebank detect ./teto.zip
    voicebank hash "Teto/あ.wav"
    voicebank list ./Singers
"""

import argparse
import logging
import sys


def cmd_install(args):
    """Handle install command."""
    from .installer import install_voicebank

    def report_progress(percent, label):
        if args.verbose:
            print(f"[{percent:3d}%] {label}")

    report = install_voicebank(args.archive, base_path=args.output, progress=report_progress)

    print("\n" + "="*50)
    print("INSTALL COMPLETE")
    print("="*50)
    print(f"Archive: {report.archive}")
    print(f"Encoding: {report.encoding} (confidence {report.confidence:.2f})")
    print(f"Entries: {report.total_entries}")
    print(f"  Parsed: {report.parsed}")
    print(f"  Copied: {report.copied}")
    print(f"  Hashed: {report.hashed}")
    print(f"  Dropped: {report.dropped}")
    print(f"Skipped lines: {report.skipped_lines}")

    return 0


def cmd_detect(args):
    """Handle detect command."""
    from .archive import ZipArchive
    from .encoding import detect_encoding

    with ZipArchive(args.archive) as archive:
        detected = detect_encoding(archive.raw_names(), label=args.archive)
        if args.names:
            for entry in archive.entries(detected.encoding):
                print(f"  {entry.key}")

    print(f"Charset: {detected.charset}")
    print(f"Codec: {detected.encoding}")
    print(f"Confidence: {detected.confidence:.2f}")
    return 0


def cmd_hash(args):
    """Handle hash command."""
    from .paths import hash_path

    for path in args.paths:
        print(f"{hash_path(path)}\t{path}")
    return 0


def cmd_list(args):
    """Handle list command."""
    from .library import list_voicebanks

    voicebanks = list_voicebanks(args.root)
    if not voicebanks:
        print("No voicebanks installed")
        return 0

    for vb in voicebanks:
        print(f"  {vb.name or '(unnamed)'} [{vb.file}]")
        if vb.author:
            print(f"    Author: {vb.author}")
        if vb.original_file:
            print(f"    Source: {vb.original_file}")
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='voicebank',
        description='Voicebank Installer - Import legacy voicebank archives into a hashed tree',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # INSTALL command
    install_parser = subparsers.add_parser(
        'install',
        help='Import a voicebank archive'
    )
    install_parser.add_argument('archive', help='Voicebank archive (.zip)')
    install_parser.add_argument('-o', '--output', default=None,
                                help='Import root (default: $VOICEBANK_ROOT)')
    install_parser.add_argument('-v', '--verbose', action='store_true', help='Print per-entry progress')
    install_parser.set_defaults(func=cmd_install)

    # DETECT command
    detect_parser = subparsers.add_parser(
        'detect',
        help='Detect the filename encoding of an archive'
    )
    detect_parser.add_argument('archive', help='Voicebank archive (.zip)')
    detect_parser.add_argument('--names', action='store_true', help='Print decoded entry names')
    detect_parser.set_defaults(func=cmd_detect)

    # HASH command
    hash_parser = subparsers.add_parser(
        'hash',
        help='Print the hashed form of source-relative paths'
    )
    hash_parser.add_argument('paths', nargs='+', help='Source-relative paths')
    hash_parser.set_defaults(func=cmd_hash)

    # LIST command
    list_parser = subparsers.add_parser(
        'list',
        help='List installed voicebanks'
    )
    list_parser.add_argument('root', nargs='?', default=None, help='Import root')
    list_parser.set_defaults(func=cmd_list)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        return args.func(args)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
