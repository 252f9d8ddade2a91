"""Telegram client factory and login flow for debitwatch.

We explicitly manage the client's lifecycle (start/run_until_disconnected)
so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

from getpass import getpass
import logging
import os

from dotenv import load_dotenv
import qrcode
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    API_ID/API_HASH are read via python-dotenv to keep secrets out of the
    repo. The session name defaults to "debitwatch".
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "debitwatch")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    LOGGER.info("Initializing Telegram client")

    return TelegramClient(session_name, int(api_id), api_hash)


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


def _resolve_2fa_password() -> str:
    password = os.getenv("2FA")
    if password:
        return password
    return getpass("2FA password: ")


async def _authorize_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    print("Scan this code in Telegram > Settings > Devices > Link Desktop Device")
    _print_qr(qr.url)
    await qr.wait(timeout=120)


async def _authorize_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or input("Phone number (international format): ").strip()
    await client.send_code_request(phone)
    code = input("Login code: ").strip()
    try:
        await client.sign_in(phone=phone, code=code)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


def _pick_login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    while True:
        print("")
        print("Login methods:")
        print("[1] QR code")
        print("[2] Phone code")
        print("[3] Exit")
        choice = input("debitwatch > ").strip()
        if choice == "1":
            return "qr"
        if choice == "2":
            return "phone"
        if choice == "3":
            raise SystemExit(0)
        print("Invalid option. Please choose 1, 2, or 3.")


async def authorize(client: TelegramClient) -> None:
    """Log the session in unless it is already authorized."""

    if await client.is_user_authorized():
        return

    try:
        if _pick_login_method() == "phone":
            await _authorize_with_phone(client)
        else:
            await _authorize_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())

    me = await client.get_me()
    LOGGER.info("Logged in as %s", getattr(me, "first_name", None) or getattr(me, "id", "?"))
