"""
tahoeapi CLI：保存一次目录地址与选项，之后所有命令默认使用。
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from tahoeapi import TahoeClient, TahoeError
from tahoeapi.backend import DISPLAY_NAME, PROTOCOL_KEY, SUPPORTED_OPTIONS
from tahoeapi.cli_config import clear_config, load_config, save_config
from tahoeapi.endpoint import (
    OPTION_ACCEPT_ANY_CERTIFICATE,
    OPTION_ACCEPT_CERTIFICATE_HASH,
    OPTION_USE_SSL,
)


def _format_size(n: int) -> str:
    """将字节数格式化为人类可读（KiB/MiB/GiB）；负数表示未知。"""
    if n < 0:
        return "?"
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MiB"
    return f"{n / (1024 * 1024 * 1024):.1f} GiB"


def _make_progress_callback(filename: str) -> tuple[object, object]:
    """返回 (on_progress(sent, total) 回调, finish 回调)。进度条输出到 stderr。"""
    last_pct: list[int] = [-1]
    bar_width = 24

    def on_progress(sent: int, total_bytes: int) -> None:
        if total_bytes <= 0:
            return
        pct = min(100, int(100 * sent / total_bytes))
        if pct != last_pct[0] and (pct % 5 == 0 or sent == total_bytes):
            last_pct[0] = pct
            filled = int(bar_width * pct / 100)
            bar = "=" * filled + " " * (bar_width - filled)
            sys.stderr.write(f"\r  {filename} [{bar}] {pct}% {_format_size(sent)}/{_format_size(total_bytes)}   ")
            sys.stderr.flush()

    def finish() -> None:
        sys.stderr.write("\n")
        sys.stderr.flush()

    return on_progress, finish


app = typer.Typer(
    name=PROTOCOL_KEY,
    help=f"{DISPLAY_NAME} gateway CLI. Save a directory address once; use it for all commands.",
)

_url_option: type = Annotated[
    Optional[str],
    typer.Option("--url", "-u", help="Override saved directory address (required if none saved)"),
]
_use_ssl_option: type = Annotated[bool, typer.Option(f"--{OPTION_USE_SSL}", help="Connect over https")]
_accept_any_option: type = Annotated[
    bool,
    typer.Option(f"--{OPTION_ACCEPT_ANY_CERTIFICATE}", help="Disable certificate checks"),
]
_accept_hash_option: type = Annotated[
    Optional[str],
    typer.Option(f"--{OPTION_ACCEPT_CERTIFICATE_HASH}", help="Accept only the certificate with this hash"),
]


def _merge_options(
    saved: dict[str, str] | None,
    use_ssl: bool = False,
    accept_any: bool = False,
    accept_hash: str | None = None,
) -> dict[str, str]:
    """命令行上给出的选项覆盖（只会追加）已保存的选项。"""
    options = dict(saved or {})
    if use_ssl:
        options[OPTION_USE_SSL] = "true"
    if accept_any:
        options[OPTION_ACCEPT_ANY_CERTIFICATE] = "true"
    if accept_hash:
        options[OPTION_ACCEPT_CERTIFICATE_HASH] = accept_hash
    return options


def _fail(message: object) -> typer.Exit:
    typer.echo(f"error: {message}", err=True)
    return typer.Exit(1)


def _get_client(url: str | None, options: dict[str, str]) -> TahoeClient | None:
    cfg = load_config()
    address = url or (cfg and cfg.get("url"))
    if not address:
        return None
    saved = cfg.get("options", {}) if cfg and not url else {}
    return TahoeClient(address, {**saved, **options})


def _require_client(
    url: str | None,
    use_ssl: bool = False,
    accept_any: bool = False,
    accept_hash: str | None = None,
) -> TahoeClient:
    try:
        client = _get_client(url, _merge_options(None, use_ssl, accept_any, accept_hash))
    except TahoeError as e:
        raise _fail(e)
    if client is None:
        raise _fail(f"no saved address. run '{PROTOCOL_KEY} login' or pass --url")
    return client


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log HTTP requests to stderr")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ------------------------- login / logout / info / options -------------------------


@app.command("login", help="Save directory address and options to local config")
def login(
    url: Annotated[Optional[str], typer.Option("--url", "-u", help="Directory address (…/uri/URI:DIR2:…)")] = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    url = url or input("Directory address (e.g. http://127.0.0.1:3456/uri/URI:DIR2:...): ").strip()
    if not url:
        raise _fail("address required")
    options = _merge_options(None, use_ssl, accept_any, accept_hash)
    try:
        TahoeClient(url, options)
    except TahoeError as e:
        raise _fail(e)
    save_config(url, options)
    typer.echo("Saved.")


@app.command("logout", help="Clear saved address")
def logout() -> None:
    if clear_config():
        typer.echo("Cleared.")
    else:
        typer.echo("No saved address.")


@app.command("info", help="Show saved address and options")
def info_cmd() -> None:
    cfg = load_config()
    if not cfg:
        typer.echo(f"No saved address. Run '{PROTOCOL_KEY} login' or pass --url for commands.")
        return
    typer.echo(f"url: {cfg.get('url')}")
    for key, value in sorted(cfg["options"].items()):
        typer.echo(f"{key}: {value}")


@app.command("options", help="List supported backend options")
def options_cmd() -> None:
    for opt in SUPPORTED_OPTIONS:
        typer.echo(f"--{opt.name} ({opt.kind}): {opt.short_description}")
        typer.echo(f"    {opt.long_description}")


# ------------------------- test / list -------------------------


@app.command("test", help="Check that the directory can be listed")
def test_cmd(
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    try:
        client.test()
    except TahoeError as e:
        raise _fail(e)
    typer.echo("OK.")


def _cmd_list_impl(
    url: str | None,
    use_ssl: bool,
    accept_any: bool,
    accept_hash: str | None,
) -> None:
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    try:
        entries = client.list()
    except TahoeError as e:
        raise _fail(e)
    for e in entries:
        name = f"{e.name}/" if e.is_folder else e.name
        size = _format_size(e.size)
        modified = e.last_modified.isoformat(timespec="seconds") if e.last_modified else "-"
        typer.echo(f"  {name}  {size}  {modified}")


@app.command("list", help="List directory")
def list_cmd(
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    _cmd_list_impl(url, use_ssl, accept_any, accept_hash)


@app.command("ls", help="Alias for list")
def ls_cmd(
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    _cmd_list_impl(url, use_ssl, accept_any, accept_hash)


# ------------------------- mkdir / upload / download / delete -------------------------


@app.command("mkdir", help="Create the directory addressed by the saved address")
def mkdir_cmd(
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    try:
        client.create_folder()
    except TahoeError as e:
        raise _fail(e)
    typer.echo("Created.")


@app.command("upload", help="Upload a file")
def upload_cmd(
    path: Annotated[Path, typer.Argument(help="Local file path")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Remote name (default: local name)")] = None,
    progress: Annotated[bool, typer.Option("--progress", "-p", help="Show upload progress")] = False,
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    if not path.is_file():
        raise _fail(f"not a file: {path}")
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    remote_name = name or path.name
    on_progress, progress_finish = _make_progress_callback(remote_name) if progress else (None, lambda: None)
    try:
        client.put_file(remote_name, path, on_progress=on_progress)
    except (TahoeError, OSError) as e:
        raise _fail(e)
    finally:
        progress_finish()
    typer.echo("Uploaded.")


@app.command("download", help="Download a file")
def download_cmd(
    remote_name: Annotated[str, typer.Argument(help="Remote name in the directory")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Local path (default: same name)")] = None,
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    out = output if output is not None else Path(remote_name).name
    try:
        client.get_file(remote_name, out)
    except (TahoeError, OSError) as e:
        raise _fail(e)
    typer.echo(f"Saved to {out}.")


@app.command("delete", help="Delete a file or subdirectory link")
def delete_cmd(
    remote_name: Annotated[str, typer.Argument(help="Remote name in the directory")],
    url: _url_option = None,
    use_ssl: _use_ssl_option = False,
    accept_any: _accept_any_option = False,
    accept_hash: _accept_hash_option = None,
) -> None:
    client = _require_client(url, use_ssl, accept_any, accept_hash)
    try:
        client.delete(remote_name)
    except TahoeError as e:
        raise _fail(e)
    typer.echo("Deleted.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
