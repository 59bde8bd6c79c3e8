import dataclasses
import logging
import os
import sys
from typing import Any, Dict, Optional
try:
    import typer
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.markup import escape
except ImportError:
    print('Error: CLI dependencies not found.')
    print('Please install with: pip install mongouri or pip install typer rich')
    sys.exit(1)
from .diagnostics import Diagnostics
from .errors import ParseError
from .uri import ParsedConnectionString, parse_connection_string
from .utils import DEBUG_ENV_VAR, REDACTED, URI_ENV_VAR, debug_enabled, get_uri_from_env, normalize_target, redact_uri
app = typer.Typer(help='mongouri - MongoDB connection string inspector', no_args_is_help=True, add_completion=False)
console = Console()


@app.callback()
def mongouri_main():
    if debug_enabled():
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')


def resolve_target(target: Optional[str]) -> str:
    if not target:
        target = get_uri_from_env()
    if not target:
        console.print(f'[bold red]Error:[/bold red] No connection string given and {URI_ENV_VAR} is not set.')
        raise typer.Exit(code=1)
    return normalize_target(target)


def mongouri_parse(target: str, case_translate: bool=True) -> ParsedConnectionString:
    try:
        return parse_connection_string(target, case_translate=case_translate)
    except ParseError as e:
        console.print(f'[bold red]{e.kind.value}:[/bold red] {escape(str(e))}')
        console.print(f'[dim]{escape(redact_uri(target))}[/dim]')
        raise typer.Exit(code=1)


def to_report(parsed: ParsedConnectionString) -> Dict[str, Any]:
    report = {'scheme': parsed.scheme, 'hosts': [dataclasses.asdict(h) for h in parsed.hosts], 'database': parsed.database, 'credentials': None, 'options': parsed.options}
    if parsed.credentials:
        creds = dataclasses.asdict(parsed.credentials)
        if creds['password']:
            creds['password'] = REDACTED
        report['credentials'] = creds
    return report


@app.command(name='inspect', help='Parse a connection string and show its typed configuration.')
def mongouri_inspect(target: Optional[str]=typer.Argument(None, help=f'Connection string (defaults to ${URI_ENV_VAR})'), no_case_translate: bool=typer.Option(False, '--no-case-translate', help='Keep option names as written'), as_json: bool=typer.Option(False, '--json', help='Print JSON')):
    target = resolve_target(target)
    parsed = mongouri_parse(target, case_translate=not no_case_translate)
    if as_json:
        console.print_json(data=to_report(parsed))
        return
    hosts = Table(title='Hosts')
    hosts.add_column('Kind', style='cyan')
    hosts.add_column('Host / Path', style='green')
    hosts.add_column('Port', style='white')
    for host in parsed.hosts:
        hosts.add_row(host.kind, escape(host.path if host.is_unix_socket else host.host), '' if host.port is None else str(host.port))
    console.print(hosts)
    creds = parsed.credentials
    if creds:
        password = 'none' if creds.password is None else REDACTED
        console.print(Panel(f'[bold]User:[/bold] {escape(str(creds.username))}\n[bold]Password:[/bold] {password}\n[bold]Source:[/bold] {escape(creds.source)}\n[bold]Mechanism:[/bold] {creds.mechanism or "default"}', title='Credentials'))
    console.print(f"[bold]Database:[/bold] {escape(parsed.database) if parsed.database else '[dim]none[/dim]'}")
    if parsed.options:
        table = Table(title='Options')
        table.add_column('Option', style='cyan')
        table.add_column('Value', style='green')
        table.add_column('Type', style='dim')
        for key, value in parsed.options.items():
            table.add_row(escape(key), escape(repr(value)), type(value).__name__)
        console.print(table)


@app.command(name='doctor', help='Check a connection string for errors and risky settings.')
def mongouri_doctor(target: Optional[str]=typer.Argument(None, help='Connection string')):
    target = resolve_target(target)
    report = Diagnostics(target).doctor()
    console.print(f"[bold]Target:[/bold] {escape(report['target'])}")
    if report['status'] == 'healthy':
        console.print('[green]Status: Healthy[/green]')
    elif report['status'] == 'invalid':
        console.print(f"[red]Status: Invalid ({report['error_kind']})[/red]")
    else:
        console.print('[yellow]Status: Healthy with warnings[/yellow]')
    if report['issues']:
        console.print('[red]Issues found:[/red]')
        for issue in report['issues']:
            console.print(f'  - {escape(issue)}')
    if report['status'] == 'invalid':
        raise typer.Exit(code=1)


@app.command(name='normalize', help='Print the canonical form of a connection string.')
def mongouri_normalize(target: Optional[str]=typer.Argument(None, help='Connection string'), show_password: bool=typer.Option(False, '--show-password', help='Do not mask the password')):
    target = resolve_target(target)
    parsed = mongouri_parse(target)
    console.print(parsed.to_uri(redact=not show_password), markup=False, highlight=False, soft_wrap=True)


@app.command(name='redacted-uri')
def mongouri_redacted_uri(target: str=typer.Argument(..., help='URI to redact')):
    console.print(redact_uri(target), markup=False, highlight=False, soft_wrap=True)


@app.command(name='env')
def mongouri_env():
    table = Table(title='Environment Variables')
    table.add_column('Variable', style='cyan')
    table.add_column('Value', style='green')
    table.add_column('Description', style='white')
    uri = os.environ.get(URI_ENV_VAR)
    env_vars = {URI_ENV_VAR: (escape(redact_uri(uri)) if uri else 'Not Set', 'Default connection string'), DEBUG_ENV_VAR: (os.environ.get(DEBUG_ENV_VAR, 'False'), 'Enable Debug Logging')}
    for key, (val, desc) in env_vars.items():
        table.add_row(key, val, desc)
    console.print(table)


if __name__ == '__main__':
    app()
