# session_smoke.py
import asyncio
import logging
import os

from loyalty_app.core.supabase_client import create_public_client
from loyalty_app.schemas.forms import LoginForm
from loyalty_app.session.context import AuthContext


async def main():
    logging.basicConfig(level=logging.INFO)
    print("Signing in...")

    client = await create_public_client()
    ctx = AuthContext(client)
    await ctx.start()

    await ctx.sign_in(
        LoginForm(
            email=os.environ["SMOKE_EMAIL"],        # <-- a test account
            password=os.environ["SMOKE_PASSWORD"],
        )
    )
    snapshot = await ctx.refresh_user_data()
    print(snapshot.model_dump_json(indent=2) if snapshot else "No session.")

    await ctx.sign_out()
    print("Signed out; snapshot empty:", ctx.snapshot.is_empty)
    await ctx.close()


if __name__ == "__main__":
    asyncio.run(main())
