#!/usr/bin/env python3
# PYTHON_ARGCOMPLETE_OK
"""
Command-line interface for lodlabel
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

import argcomplete

from . import fetch, resolvers, urls
from ._version import __version__
from .config import Config
from .errors import LabelError


def configure_logging(config: Config, verbose: int = 0, quiet: bool = False) -> None:
    """Set up root logging from config and command-line flags."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, config.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def configure_fetcher(config: Config) -> fetch.Fetcher:
    """Replace the default fetcher with one built from config."""
    return fetch.get_fetcher(
        timeout=config.http_timeout,
        connect_timeout=config.http_connect_timeout,
        max_redirects=config.http_max_redirects,
        user_agent=config.http_user_agent,
    )


def resolve_command(uri: str, lang: str | None = None, output_json: bool = False) -> int:
    """Resolve and print the label of an identifier."""
    resolver = resolvers.find_resolver(uri)
    if resolver is None:
        print(f"No resolver for {uri}", file=sys.stderr)
        print("Known namespaces:", file=sys.stderr)
        for r in resolvers.RESOLVERS:
            print(f"  {r.id}", file=sys.stderr)
            print(f"  {r.id2}", file=sys.stderr)
        return 1

    label = resolver.resolve(uri, lang)
    found = resolvers.is_label_found(uri, label)

    if output_json:
        print(json.dumps(
            {"uri": uri, "label": label if found else None, "found": found, "resolver": resolver.name},
            indent=2,
            ensure_ascii=False,
        ))
    elif found:
        print(label)
    else:
        print(f"No label found for {uri}", file=sys.stderr)
    return 0 if found else 1


def encode_command(url: str) -> int:
    """Print the request form of a URL."""
    try:
        print(urls.normalize_for_request(url))
    except LabelError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def decode_command(url: str) -> int:
    """Print the human-readable form of a URL."""
    try:
        print(urls.humanize(url))
    except LabelError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def fetch_command(url: str, accept: str | None = None) -> int:
    """Fetch a URL and write the body to stdout."""
    headers = {"accept": accept} if accept else None
    try:
        body = fetch.fetch(url, headers)
    except LabelError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    sys.stdout.buffer.write(body)
    sys.stdout.flush()
    return 0


def resolvers_command() -> int:
    """List the namespaces labels can be resolved for."""
    for r in resolvers.RESOLVERS:
        print(f"{r.name}:")
        print(f"  {r.id}")
        print(f"  {r.id2}")
    return 0


def config_command(config: Config, show_path: bool = False) -> int:
    """Show configuration information."""
    if show_path:
        if config.path:
            print(config.path)
        else:
            print("No configuration file found")
        return 0

    if config.path:
        print(f"# Configuration loaded from: {config.path}")
    else:
        print("# No configuration file found, showing defaults")
    print()
    print(json.dumps(config.data, indent=2))
    return 0


def api_command(port: int = 8766, host: str = "127.0.0.1") -> int:
    """Start the label API server."""
    try:
        import uvicorn

        from .api import app
    except ImportError as e:
        print(f"Missing required package: {e}")
        print("\nInstall API server dependencies:")
        print('  pip install "lodlabel[api]"')
        return 1

    print(f"Label endpoint: http://{host}:{port}/label?uri=...&lang=...")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        return 0
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser_cli = argparse.ArgumentParser(
        prog="lodlabel",
        description="lodlabel - Resolve human-readable labels for linked-data identifiers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Label of a GND authority record
  lodlabel resolve https://d-nb.info/gnd/118540238

  # Title of a lobid resource, German preferred
  lodlabel resolve http://lobid.org/resources/HT002189125 --lang de

  # Request form of a URL
  lodlabel encode "http://exämple.org/a b"

  # Start the HTTP API
  lodlabel api --port 8766
        """
    )
    parser_cli.add_argument(
        '--version', '-V',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser_cli.add_argument('--verbose', '-v', action='count', default=0,
                            help='More log output (-vv for debug)')
    parser_cli.add_argument('--quiet', '-q', action='store_true', help='Only log errors')

    subparsers = parser_cli.add_subparsers(dest='command', help='Command to run')

    resolve_parser = subparsers.add_parser('resolve', help='Resolve the label of an identifier')
    resolve_parser.add_argument('uri', help='Linked-data identifier')
    resolve_parser.add_argument('--lang', '-l', type=str, default=None,
                                help='Preferred label language (default: from config, else any)')
    resolve_parser.add_argument('--json', '-j', action='store_true', help='Output as JSON')

    encode_parser = subparsers.add_parser('encode', help='Print the request form of a URL')
    encode_parser.add_argument('url', help='URL to encode')

    decode_parser = subparsers.add_parser('decode', help='Print the human-readable form of a URL')
    decode_parser.add_argument('url', help='URL to decode')

    fetch_parser = subparsers.add_parser('fetch', help='Fetch a URL and write the body to stdout')
    fetch_parser.add_argument('url', help='URL to fetch')
    fetch_parser.add_argument('--accept', '-a', type=str, default=None,
                              help='Accept header; the response must match it')

    subparsers.add_parser('resolvers', help='List supported namespaces')

    config_parser = subparsers.add_parser('config', help='Show configuration')
    config_parser.add_argument('--show', action='store_true', help='Show merged configuration')
    config_parser.add_argument('--path', action='store_true', help='Show config file path')

    api_parser = subparsers.add_parser('api', help='Start the label API server')
    api_parser.add_argument('--port', '-p', type=int, default=None, help='Port (default: from config)')
    api_parser.add_argument('--host', type=str, default=None, help='Host (default: from config)')

    return parser_cli


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    config = Config()
    parser_cli = build_parser()

    # Enable shell tab completion
    argcomplete.autocomplete(parser_cli)

    args = parser_cli.parse_args(argv)
    configure_logging(config, args.verbose, args.quiet)

    if args.command == 'resolve':
        configure_fetcher(config)
        lang = args.lang if args.lang is not None else config.lang
        return resolve_command(args.uri, lang, args.json)
    elif args.command == 'encode':
        return encode_command(args.url)
    elif args.command == 'decode':
        return decode_command(args.url)
    elif args.command == 'fetch':
        configure_fetcher(config)
        return fetch_command(args.url, args.accept)
    elif args.command == 'resolvers':
        return resolvers_command()
    elif args.command == 'config':
        return config_command(config, show_path=args.path)
    elif args.command == 'api':
        configure_fetcher(config)
        port = args.port if args.port is not None else config.api_port
        host = args.host if args.host is not None else config.api_host
        return api_command(port, host)
    else:
        parser_cli.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
