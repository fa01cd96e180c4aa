#!/usr/bin/env python3
"""
JS Monitor CLI - tracks the Fansly main JS asset across deployments
Fetch -> Change gate -> Check keys + headers -> Live traffic -> Versioned record
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from colorama import init, Fore, Style
init(autoreset=True)

from jsmonitor.core.config import Config, load_config
from jsmonitor.core.errors import MonitorError
from jsmonitor.core.logger import logger, set_verbose, set_silent
from jsmonitor.services.datastore import DataStore
from jsmonitor.pipelines.monitor import MonitorRunner


def print_banner():
    banner = """
""" + Fore.CYAN + """╔═══════════════════════════════════════════════════════╗
║                                                       ║
║   """ + Fore.WHITE + """░░█ █▀   █▀▄▀█ █▀█ █▄ █ █ ▀█▀ █▀█ █▀█             """ + Fore.CYAN + """║
║   """ + Fore.WHITE + """█▄█ ▄█   █ ▀ █ █▄█ █ ▀█ █  █  █▄█ █▀▄             """ + Fore.CYAN + """║
║                                                       ║
║   """ + Fore.GREEN + """Fansly main JS change monitor v1.0.0              """ + Fore.CYAN + """║
║   """ + Fore.WHITE + """Check keys, custom headers, live API traffic      """ + Fore.CYAN + """║
║                                                       ║
╚═══════════════════════════════════════════════════════╝
""" + Style.RESET_ALL

    print(banner, flush=True)


def show_help():
    print(f"""
{Fore.CYAN}Usage:{Style.RESET_ALL}
    python cli.py <command> [options]

{Fore.CYAN}Commands:{Style.RESET_ALL}
    {Fore.GREEN}run{Style.RESET_ALL}         Run one monitoring pass
    {Fore.GREEN}latest{Style.RESET_ALL}      Show the latest recorded snapshot
    {Fore.GREEN}history{Style.RESET_ALL}     List recorded versions
    {Fore.GREEN}help{Style.RESET_ALL}        Show this message

{Fore.CYAN}Options:{Style.RESET_ALL}
    -o, --output <dir>    Output directory (default: data, env JSMONITOR_OUTPUT_DIR)
    --token <token>       Session token for authenticated capture (env FANSLY_TOKEN)
    --prettify            Beautify the saved JS copy (env PRETTIFY_JS=true)
    --no-browser          Skip live API traffic capture
    -v, --verbose         Verbose output
    -s, --silent          Silent mode (minimal output)

{Fore.CYAN}Examples:{Style.RESET_ALL}
    {Fore.WHITE}# Check for a new version and record it{Style.RESET_ALL}
    python cli.py run --prettify

    {Fore.WHITE}# Static analysis only, custom output directory{Style.RESET_ALL}
    python cli.py run --no-browser -o results

    {Fore.WHITE}# Inspect what has been recorded{Style.RESET_ALL}
    python cli.py latest
    python cli.py history -o results
""")


def parse_args(args):
    options = {
        'output': None,
        'token': None,
        'prettify': False,
        'browser': True,
        'verbose': False,
        'silent': False,
    }

    positional = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ['-o', '--output']:
            if i + 1 < len(args):
                options['output'] = args[i + 1]
                i += 2
                continue
        elif arg == '--token':
            if i + 1 < len(args):
                options['token'] = args[i + 1]
                i += 2
                continue
        elif arg == '--prettify':
            options['prettify'] = True
        elif arg == '--no-browser':
            options['browser'] = False
        elif arg in ['-v', '--verbose']:
            options['verbose'] = True
        elif arg in ['-s', '--silent']:
            options['silent'] = True
        elif arg in ['-h', '--help']:
            return 'help', options
        elif not arg.startswith('-'):
            positional.append(arg)
        i += 1

    command = positional[0] if positional else None
    return command, options


def build_config(options, environ=None) -> Config:
    """Environment first, then command line flags on top."""
    config = load_config(environ)

    if options['output']:
        config.storage.output_dir = options['output']
    if options['token']:
        config.auth_token = options['token']
    if options['prettify']:
        config.prettify_js = True
    if not options['browser']:
        config.browser.enabled = False

    return config


def run_monitor(options):
    """Run one monitoring pass"""
    if options['verbose']:
        set_verbose(True)
    elif options['silent']:
        set_silent(True)

    if not options['silent']:
        print_banner()

    config = build_config(options)

    if not options['silent']:
        print(f"\n{Fore.CYAN}[Monitor] {config.base_url}{Style.RESET_ALL}")
        print(f"  Output: {config.storage.output_dir}")
        print(f"  Prettify: {'on' if config.prettify_js else 'off'}")
        print(f"  Live capture: {'on' if config.browser.enabled else 'off'}"
              f"{' (authenticated)' if config.browser.enabled and config.auth_token else ''}\n")

    try:
        runner = MonitorRunner(config, silent_mode=options['silent'])
        outcome = runner.run_sync()
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}[!] Monitor interrupted{Style.RESET_ALL}")
        sys.exit(1)
    except MonitorError as e:
        logger.error(f"Monitor failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Monitor failed: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

    if not options['silent']:
        if outcome.is_new_version:
            record = outcome.record
            print(f"\n{Fore.GREEN}[+] New version recorded: {record.version_id}{Style.RESET_ALL}")
            print(f"  Check keys: {len(record.check_keys)}")
            print(f"  Headers: {len(record.headers)}")
            print(f"  API requests: {len(record.requests)}")
        else:
            print(f"\n{Fore.YELLOW}[=] No changes (hash {outcome.source_hash[:8]}){Style.RESET_ALL}")

    return outcome


def show_latest(options):
    """Print the latest snapshot"""
    config = build_config(options)
    datastore = DataStore.from_config(config.storage)
    snapshot = datastore.load_latest()

    if snapshot is None:
        print(f"\n{Fore.YELLOW}No snapshot found in {config.storage.output_dir}{Style.RESET_ALL}")
        return

    print(f"\n{Fore.CYAN}Latest snapshot:{Style.RESET_ALL}\n")
    print(f"  {Fore.WHITE}Captured:{Style.RESET_ALL} {snapshot.captured_at}")
    print(f"  {Fore.WHITE}File:{Style.RESET_ALL}     {snapshot.js_file}")
    print(f"  {Fore.WHITE}Hash:{Style.RESET_ALL}     {snapshot.source_hash}")

    print(f"\n  {Fore.CYAN}Check keys:{Style.RESET_ALL}")
    if not snapshot.check_keys:
        print(f"    {Fore.RED}none found{Style.RESET_ALL}")
    for finding in snapshot.check_keys:
        print(f"    {Fore.GREEN}[{finding.pattern.value}]{Style.RESET_ALL} {finding.value}")

    print(f"\n  {Fore.CYAN}Headers:{Style.RESET_ALL}")
    for name in snapshot.header_names:
        print(f"    {name}")
    print()


def show_history(options):
    """List recorded versions"""
    config = build_config(options)
    datastore = DataStore.from_config(config.storage)
    versions = datastore.list_versions()

    if not versions:
        print(f"\n{Fore.YELLOW}No versions found in {config.storage.output_dir}{Style.RESET_ALL}")
        return

    print(f"\n{Fore.CYAN}Recorded versions in {config.storage.output_dir}:{Style.RESET_ALL}\n")

    for version_id in versions:
        record = datastore.load_version(version_id)
        if record is None:
            print(f"  {Fore.RED}✗{Style.RESET_ALL} {version_id} (unreadable)")
            continue

        keys = ", ".join(k.value for k in record.check_keys) or "-"
        print(f"  {Fore.GREEN}✓{Style.RESET_ALL} {Fore.WHITE}{version_id}{Style.RESET_ALL}")
        print(f"    File: {record.original_filename}  Headers: {len(record.headers)}  Check keys: {keys}")
    print()


def main():
    args = sys.argv[1:]

    if not args:
        print_banner()
        show_help()
        return

    command, options = parse_args(args)

    if command == 'help':
        print_banner()
        show_help()
    elif command == 'run':
        run_monitor(options)
    elif command == 'latest':
        show_latest(options)
    elif command == 'history':
        show_history(options)
    else:
        print(f"{Fore.RED}[-] Unknown command: {command}{Style.RESET_ALL}")
        show_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
