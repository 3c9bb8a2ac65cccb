"""PassShare CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

app = typer.Typer(
    name="passshare",
    help="Share files with a passkey",
    add_completion=False
)
console = Console()

_options = {'api_url': None, 'proxy': None, 'insecure': False}


# Store path: ~/.config/passshare/passshare.db
def get_store_path() -> Path:
    config_dir = Path.home() / ".config" / "passshare"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "passshare.db"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def build_config(api_url: Optional[str] = None, proxy: Optional[str] = None, insecure: bool = False):
    """API configuration from the global options."""
    from passshare import APIConfig, ProxyConfig, SSLConfig

    kwargs = {}
    if proxy:
        kwargs['proxy'] = ProxyConfig(url=proxy)
    if insecure:
        kwargs['ssl'] = SSLConfig(verify=False, check_hostname=False)
    if api_url:
        return APIConfig(base_url=api_url, **kwargs)
    return APIConfig.from_env(**kwargs)


def resolve_remember(flag: Optional[bool], saved) -> bool:
    """An explicit --remember/--no-remember wins; otherwise keep remembering if credentials are saved."""
    if flag is not None:
        return flag
    return saved is not None


def make_client():
    from passshare import PassShareClient

    config = build_config(**_options)
    client = PassShareClient(get_store_path(), config=config)
    client.on('notice', print_notice)
    return client


def print_notice(notice) -> None:
    color = "red" if notice.is_error else "green"
    if notice.message:
        console.print(f"[{color}]{notice.title}:[/{color}] {notice.message}")
    else:
        console.print(f"[{color}]{notice.title}[/{color}]")


def require_user(client) -> None:
    if not client.is_logged_in():
        console.print("[red]Not logged in. Run 'passshare login' first.[/red]")
        raise typer.Exit(1)


def print_files(files) -> None:
    from passshare.core.utils import format_size

    if not files:
        console.print("[dim]No files shared yet[/dim]")
        return
    table = Table()
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Uploaded by", style="cyan")
    for f in files:
        table.add_row(f.id, f.file_name, format_size(f.size), f.uploader_username)
    console.print(table)


@app.callback()
def main_options(
    api_url: Optional[str] = typer.Option(None, "--api-url", envvar="PASSSHARE_API_URL", help="API base URL"),
    proxy: Optional[str] = typer.Option(None, "--proxy", help="HTTP proxy URL"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Share files with a passkey."""
    from passshare import setup_logging
    from passshare.core.store import SQLiteStorage, UserStore

    _options.update(api_url=api_url, proxy=proxy, insecure=insecure)
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
        setup_logging(logging.DEBUG)

    store = UserStore(SQLiteStorage(get_store_path()))
    try:
        if not store.has_onboarded:
            console.print("[bold]Welcome to PassShare[/bold]")
            console.print("Create a session, share the 8-character passkey, and swap files with anyone who joins.")
            store.mark_onboarded()
    finally:
        store.close()


@app.command()
def login(
    identifier: str = typer.Option(None, "--user", "-u", help="Username or email"),
    password: str = typer.Option(None, "--password", "-p", help="Password"),
    remember: Optional[bool] = typer.Option(
        None, "--remember/--no-remember", "-r",
        help="Stay signed in (default: keep an existing choice)"
    ),
):
    """Login and store the user locally."""
    from passshare import PassShareException, extract_error_message

    async def do_login():
        async with make_client() as client:
            saved = client.remembered_credentials()
            user_id = identifier or (saved.email if saved else None) or typer.prompt("Username or email")
            secret = password or (saved.password if saved and saved.email == user_id else None)
            if not secret:
                secret = typer.prompt("Password", hide_input=True)

            try:
                user = await client.login(user_id, secret, remember=resolve_remember(remember, saved))
            except PassShareException as e:
                console.print(f"[red]Login failed: {extract_error_message(e, 'Sign-in failed. Please try again!')}[/red]")
                raise typer.Exit(1)
            console.print(f"[green]Logged in as {user.username}[/green]")

    run_async(do_login())


@app.command()
def register(
    username: str = typer.Option(None, "--username", "-n", help="Username"),
    email: str = typer.Option(None, "--email", "-e", help="Email"),
    password: str = typer.Option(None, "--password", "-p", help="Password"),
):
    """Create an account."""
    from passshare import PassShareException, ValidationError, extract_error_message

    if not username:
        username = typer.prompt("Username")
    if not email:
        email = typer.prompt("Email")
    if not password:
        password = typer.prompt("Password", hide_input=True, confirmation_prompt=True)

    async def do_register():
        async with make_client() as client:
            try:
                await client.register(username, email, password)
            except ValidationError as e:
                for field, message in e.errors.items():
                    console.print(f"[red]{field}: {message}[/red]")
                if not e.errors:
                    console.print(f"[red]{e.message}[/red]")
                raise typer.Exit(1)
            except PassShareException as e:
                console.print(f"[red]Registration failed: {extract_error_message(e, 'Registration failed. Please try again!')}[/red]")
                raise typer.Exit(1)
            console.print("[green]Registration successful. Please sign in to continue.[/green]")

    run_async(do_register())


@app.command()
def logout(
    forget: bool = typer.Option(False, "--forget", help="Also forget remembered credentials"),
):
    """Logout and clear the stored user."""
    async def do_logout():
        async with make_client() as client:
            if not client.is_logged_in():
                console.print("[yellow]Not logged in[/yellow]")
                return
            await client.logout(forget=forget)
            console.print("[green]Logged out successfully[/green]")

    run_async(do_logout())


@app.command()
def whoami():
    """Show current logged in user."""
    from passshare.core.store import SQLiteStorage, UserStore

    store = UserStore(SQLiteStorage(get_store_path()))
    user = store.load_user()
    store.close()

    if user:
        console.print(f"Username: {user.username}")
        console.print(f"User ID: {user.id}")
        if user.is_admin:
            console.print("Role: admin")
    else:
        console.print("[red]Not logged in. Run 'passshare login' first.[/red]")
        raise typer.Exit(1)


async def _watch(client) -> None:
    """Print the file list whenever it changes until interrupted."""
    client.on('files', print_files)
    console.print(f"[cyan]Watching session {client.passkey} (Ctrl+C to stop)[/cyan]")
    while client.session.in_session:
        await asyncio.sleep(1)


@app.command()
def create(
    watch: bool = typer.Option(False, "--watch", "-w", help="Keep watching the file list"),
):
    """Create a session and print its passkey."""
    async def do_create():
        async with make_client() as client:
            require_user(client)
            passkey = await client.create_session()
            if not passkey:
                raise typer.Exit(1)
            console.print(f"Passkey: [bold]{passkey}[/bold]")
            print_files(client.files)
            if watch:
                await _watch(client)

    try:
        run_async(do_create())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


async def _join(client, passkey: str) -> None:
    require_user(client)
    if not await client.join_session(passkey):
        raise typer.Exit(1)


@app.command()
def join(
    passkey: str = typer.Argument(..., help="Session passkey"),
):
    """Join a session and list its files."""
    async def do_join():
        async with make_client() as client:
            await _join(client, passkey)
            print_files(client.files)

    run_async(do_join())


@app.command()
def files(
    passkey: str = typer.Argument(..., help="Session passkey"),
):
    """List the files of a session."""
    async def do_files():
        async with make_client() as client:
            await _join(client, passkey)
            print_files(client.files)

    run_async(do_files())


@app.command()
def watch(
    passkey: str = typer.Argument(..., help="Session passkey"),
):
    """Join a session and print its file list whenever it changes."""
    async def do_watch():
        async with make_client() as client:
            await _join(client, passkey)
            print_files(client.files)
            await _watch(client)

    try:
        run_async(do_watch())
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


@app.command()
def upload(
    passkey: str = typer.Argument(..., help="Session passkey"),
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    mime: str = typer.Option(None, "--mime", "-m", help="MIME type (guessed from the extension if omitted)"),
    name: str = typer.Option(None, "--name", "-n", help="Custom file name"),
):
    """Upload a file to a session."""
    async def do_upload():
        async with make_client() as client:
            await _join(client, passkey)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Uploading {name or file_path.name}", total=100)

                def on_progress(direction, key, percent):
                    if direction == 'upload' and percent is not None:
                        progress.update(task, completed=percent)

                client.on('progress', on_progress)
                ok = await client.upload(file_path, mime_type=mime, name=name)

            if not ok:
                raise typer.Exit(1)
            print_files(client.files)

    run_async(do_upload())


@app.command()
def download(
    passkey: str = typer.Argument(..., help="Session passkey"),
    file_id: str = typer.Argument(..., help="File ID (see 'passshare files')"),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory", file_okay=False),
):
    """Download a file from a session."""
    async def do_download():
        async with make_client() as client:
            await _join(client, passkey)

            match = next((f for f in client.files if f.id == file_id), None)
            if match is None:
                console.print(f"[red]File not found: {file_id}[/red]")
                raise typer.Exit(1)

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console
            ) as progress:
                task = progress.add_task(f"Downloading {match.file_name}", total=100)

                def on_progress(direction, key, percent):
                    if direction == 'download' and key == file_id and percent is not None:
                        progress.update(task, completed=percent)

                client.on('progress', on_progress)
                path = await client.download(match, dest_dir=output)

            if path is None:
                raise typer.Exit(1)

    run_async(do_download())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
