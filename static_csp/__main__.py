"""
static-csp CLI
"""
import argparse
import asyncio
import json
import sys

from static_csp.cloudflare.routes import CloudflareRoutesClient
from static_csp.config.loader import (
    LoggingSettings,
    load_cloudflare_settings,
    load_settings,
)
from static_csp.errors import CloudflareAPIError, ConfigurationError
from static_csp.logging_config import setup_logging
from static_csp import pipeline

EXIT_OK = 0
EXIT_WRITE_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_API_ERROR = 3


def _parse_policy(value):
    """argparse type for KEY=VALUE policy overrides"""
    key, sep, policy = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key.strip(), policy.strip()


def build_parser():
    parser = argparse.ArgumentParser(
        prog="static-csp",
        description="static-csp - Content-Security-Policy headers for static sites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate headers for a build directory
  python -m static_csp generate build

  # Use a YAML config and add a policy on the command line
  python -m static_csp generate --config csp.yaml --policy "objectSrc='none'"

  # Skip style hashing and drop frame-ancestors entirely
  python -m static_csp generate build --disable-generated styleSrc --disable-policy frameAncestors

  # Generate and register Cloudflare worker routes
  python -m static_csp generate build --register-routes --route-host "*.example.org"

  # List worker routes on the zone
  python -m static_csp routes
        """
    )
    parser.add_argument('--log-level', help='Log level (default: info)')
    parser.add_argument('--json-logs', action='store_true', default=None,
                        help='Emit JSON log lines')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Generate command
    gen_parser = subparsers.add_parser('generate', help='Inject nonces and write CSP headers')
    gen_parser.add_argument('build_dir', nargs='?', help='Build output directory')
    gen_parser.add_argument('--config', help='YAML config file')
    gen_parser.add_argument('--exclude', action='append', metavar='GLOB',
                            help='Exclude matching HTML files (repeatable)')
    gen_parser.add_argument('--policy', action='append', type=_parse_policy, metavar='KEY=VALUE',
                            help='Default value for a directive (repeatable)')
    gen_parser.add_argument('--disable-policy', action='append', metavar='KEY',
                            help='Never emit this directive (repeatable)')
    gen_parser.add_argument('--disable-generated', action='append', metavar='KEY',
                            help='Do not generate hashes for this directive (repeatable)')
    gen_parser.add_argument('--headers-file', help='Headers file name inside the build directory')
    gen_parser.add_argument('--concurrency', type=int, help='Documents processed in parallel')
    gen_parser.add_argument('--fail-on-write-error', action='store_true', default=None,
                            help='Exit non-zero when a file could not be written')
    gen_parser.add_argument('--register-routes', action='store_true', default=None,
                            help='Register Cloudflare worker routes for the pages')
    gen_parser.add_argument('--route-strategy', choices=['page', 'scope'],
                            help='How route patterns are derived')
    gen_parser.add_argument('--route-host', help='Host pattern for routes, e.g. *.example.org')

    # Routes command
    subparsers.add_parser('routes', help='List Cloudflare worker routes as JSON')

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    log_settings = LoggingSettings(**{
        key: value
        for key, value in (("log_level", args.log_level), ("log_json", args.json_logs))
        if value is not None
    })
    setup_logging(log_level=log_settings.log_level, json_format=log_settings.log_json)

    try:
        if args.command == 'generate':
            return asyncio.run(cmd_generate(args))
        elif args.command == 'routes':
            return asyncio.run(cmd_routes(args))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except CloudflareAPIError as e:
        print(f"Cloudflare API error: {e}", file=sys.stderr)
        return EXIT_API_ERROR

    return EXIT_OK


async def cmd_generate(args):
    """Execute generate command"""
    settings = load_settings(
        args.config,
        build_dir=args.build_dir,
        exclude=args.exclude,
        policies=dict(args.policy) if args.policy else None,
        disable_policies=args.disable_policy,
        disable_generated_policies=args.disable_generated,
        headers_file=args.headers_file,
        concurrency=args.concurrency,
        fail_on_write_error=args.fail_on_write_error,
        register_routes=args.register_routes,
        route_strategy=args.route_strategy,
        route_host=args.route_host,
    )

    if not settings.register_routes:
        report = await pipeline.run(settings)
    else:
        async with CloudflareRoutesClient(load_cloudflare_settings()) as cloudflare:
            report = await pipeline.run(settings, cloudflare=cloudflare)

    if settings.fail_on_write_error and not report.ok:
        return EXIT_WRITE_FAILED
    return EXIT_OK


async def cmd_routes(args):
    """Execute routes command"""
    async with CloudflareRoutesClient(load_cloudflare_settings()) as cloudflare:
        routes = await cloudflare.list_routes()
    print(json.dumps(routes, indent=2))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
