"""
Seed a login account (and optionally an opening balance) for local testing.

    python seed_account.py demo@example.com pass123 --category powerball --deposit 10.00
    python seed_account.py admin@example.com admin123 --admin
"""
import argparse
import asyncio

from prediction_ledger.core.config import get_settings
from prediction_ledger.core.container import get_container
from prediction_ledger.infrastructure.database.session import get_engine, get_session_factory, init_db
from prediction_ledger.modules.accounts import AccountCreateInput, AccountService
from prediction_ledger.modules.catalog import CATEGORIES


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an account in the prediction ledger database")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Demo")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--category", choices=CATEGORIES, default="powerball")
    parser.add_argument("--admin", action="store_true", help="create the account with the admin role")
    parser.add_argument("--deposit", default=None, help="opening balance credited as a deposit, e.g. 10.00")
    return parser.parse_args()


async def seed_account(args: argparse.Namespace) -> None:
    await init_db()
    settings = get_settings()

    async with get_session_factory()() as session:
        service = AccountService.with_session(session, trial_days=settings.ledger.trial_days)
        existing = await service.get_by_email(args.email)
        if existing:
            print(f"Account already exists: {existing.email} ({existing.id})")
            return
        account = await service.register(
            AccountCreateInput(
                email=args.email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
                selected_category=args.category,
                role="admin" if args.admin else "user",
            )
        )
        await session.commit()

    if args.deposit:
        await get_container().wallet.deposit(account.id, args.deposit, source="seed")

    print(f"Created {account.role} account {account.email} / {args.password} ({account.id})")
    await get_engine().dispose()


if __name__ == "__main__":
    asyncio.run(seed_account(parse_args()))
