from __future__ import annotations

import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv
import typer

from xero_ledger.adapters.clients.errors import XeroAuthError
from xero_ledger.adapters.clients.xero_auth import (
    DEFAULT_REFRESH_TOKEN_PATH,
    TokenSet,
    XeroCredentials,
    load_refresh_token,
    refresh_access_token,
    save_bearer_token,
    save_refresh_token,
)
from xero_ledger.tools.ledger.account_transactions_tool import (
    ListAccountTransactionsTool,
)

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="xero-ledger: per-account transaction reports from Xero.",
    no_args_is_help=True,
)

auth_app = typer.Typer(help="Manage Xero OAuth tokens.")
app.add_typer(auth_app, name="auth")


@app.command("transactions")
def transactions(
    from_date: str = typer.Option(..., "--from-date", help="Start date (YYYY-MM-DD)"),
    to_date: str = typer.Option(..., "--to-date", help="End date (YYYY-MM-DD)"),
    account_codes: list[str] | None = typer.Option(  # noqa: B008
        None, "--account-code", help="Account code to include (repeatable)"
    ),
    account_ids: list[str] | None = typer.Option(  # noqa: B008
        None, "--account-id", help="Account UUID to include (repeatable)"
    ),
    source_type: str | None = typer.Option(
        None,
        "--source-type",
        help="ACCREC, ACCPAY, ACCRECCREDIT, ACCPAYCREDIT, CASHREC, CASHPAID or MANJOURNAL",
    ),
    output_dir: Path | None = typer.Option(  # noqa: B008
        None, "--output-dir", help="Directory for the results file (default: temp dir)"
    ),
) -> None:
    """List account transactions and write the rows to a JSON file."""
    tool = ListAccountTransactionsTool(output_dir=output_dir)
    result = asyncio.run(
        tool.execute(
            fromDate=from_date,
            toDate=to_date,
            accountCodes=account_codes or None,
            accountIds=account_ids or None,
            sourceType=source_type,
        )
    )
    if result["status"] != "success":
        typer.echo(result["error"], err=True)
        raise typer.Exit(1)
    typer.echo(result["summary"])


async def _refresh_tokens(refresh_token: str) -> TokenSet:
    credentials = XeroCredentials(
        client_id=os.environ.get("XERO_CLIENT_ID"),
        client_secret=os.environ.get("XERO_CLIENT_SECRET"),
    )
    return await refresh_access_token(credentials, refresh_token)


@auth_app.command("refresh")
def auth_refresh(
    env_file: Path = typer.Option(  # noqa: B008
        Path(".env"), "--env-file", help="Dotenv file that receives the bearer token"
    ),
    token_file: Path = typer.Option(  # noqa: B008
        DEFAULT_REFRESH_TOKEN_PATH,
        "--token-file",
        help="File holding the Xero refresh token",
    ),
) -> None:
    """
    Exchange the saved refresh token for a new bearer token.

    Writes XERO_CLIENT_BEARER_TOKEN to the env file and stores the rotated
    refresh token. Restart the MCP server afterwards to pick up the token.
    """
    refresh_token = load_refresh_token(token_file)
    if refresh_token is None:
        typer.echo(f"No refresh token found in {token_file}", err=True)
        raise typer.Exit(1)

    try:
        tokens = asyncio.run(_refresh_tokens(refresh_token))
    except XeroAuthError as e:
        typer.echo(f"Refresh failed: {e}", err=True)
        raise typer.Exit(1) from None

    save_bearer_token(tokens.access_token, env_file)
    if tokens.refresh_token:
        save_refresh_token(tokens.refresh_token, token_file)

    typer.echo(
        f"Updated {env_file} with a new bearer token "
        f"(valid for {round(tokens.expires_in / 60)} min)."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
