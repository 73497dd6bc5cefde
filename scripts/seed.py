#!/usr/bin/env python
"""
Create a demo workspace for development and print bearer tokens.

The demo users have fixed IDs, so rerunning the script reuses the same
workspace and prints fresh tokens for it.
"""

import argparse
import asyncio
from datetime import timedelta
from uuid import NAMESPACE_DNS, UUID, uuid5

from sqlalchemy import select

from nexus.core.auth import create_access_token
from nexus.core.database import async_session_factory
from nexus.core.permissions import WorkspaceRole
from nexus.modules.workspaces.models import Workspace, WorkspaceMember


DEMO_SLUG = "acme-demo"

DEMO_USERS = [
    ("owner@acme.com", "Olivia Owner", WorkspaceRole.OWNER),
    ("admin@acme.com", "Adam Admin", WorkspaceRole.ADMIN),
    ("member@acme.com", "Mia Member", WorkspaceRole.MEMBER),
]


def demo_user_id(email: str) -> UUID:
    return uuid5(NAMESPACE_DNS, email)


async def seed_demo() -> Workspace:
    """Create the demo workspace with an owner, an admin and a member."""
    async with async_session_factory() as session:
        result = await session.execute(
            select(Workspace).where(Workspace.slug == DEMO_SLUG)
        )
        workspace = result.scalar_one_or_none()
        if workspace:
            print(f"Demo workspace already exists: {workspace.name} ({workspace.id})")
            return workspace

        owner_email = DEMO_USERS[0][0]
        workspace = Workspace(
            name="Acme Demo",
            slug=DEMO_SLUG,
            owner_id=demo_user_id(owner_email),
        )
        session.add(workspace)
        await session.flush()

        for email, full_name, role in DEMO_USERS:
            session.add(
                WorkspaceMember(
                    workspace_id=workspace.id,
                    user_id=demo_user_id(email),
                    email=email,
                    full_name=full_name,
                    # The owner's membership row is stored as admin
                    role=WorkspaceRole.ADMIN.value
                    if role is WorkspaceRole.OWNER
                    else role.value,
                )
            )

        await session.commit()
        print(f"Created demo workspace: {workspace.name} ({workspace.id})")
        return workspace


def print_tokens(hours: int) -> None:
    print("\nDevelopment bearer tokens:")
    for email, full_name, role in DEMO_USERS:
        token = create_access_token(
            user_id=demo_user_id(email),
            email=email,
            full_name=full_name,
            expires_delta=timedelta(hours=hours),
        )
        print(f"\n[{role.value}] {email}\n{token}")


async def main(hours: int) -> None:
    await seed_demo()
    print_tokens(hours)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo workspace")
    parser.add_argument(
        "--token-hours",
        type=int,
        default=24,
        help="Lifetime of the printed tokens in hours (default: 24)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.token_hours))
