#!/usr/bin/env python3
"""
seed_organization.py

Purpose:
  Register an organization and its memberships in the self-hosted identity
  tables used by the sprint board API.
  - If the organization exists: keep it and only update memberships.
  - If not: create it with the given id, name and slug.

Examples:
  python tools/seed_organization.py org_acme "Acme Inc" acme --admin user_1 --member user_2 user_3
  python tools/seed_organization.py org_acme "Acme Inc" acme --remove user_3
  DATABASE_URL=sqlite:///data/sprintboard.db python tools/seed_organization.py ...

Exit codes:
  0 = success (exists or created)
  1 = handled application error
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sprintboard.core.statuses import ROLE_ADMIN, ROLE_MEMBER  # noqa: E402
from sprintboard.crud.organizations import (  # noqa: E402
    create_organization,
    get_organization,
    list_memberships,
    remove_membership,
    set_membership,
)
from sprintboard.db.migrate import run_migrations  # noqa: E402
from sprintboard.db.session import Base, SessionLocal, engine  # noqa: E402
from sprintboard.models import issue as _issue  # noqa: E402,F401
from sprintboard.models import organization as _organization  # noqa: E402,F401
from sprintboard.models import project as _project  # noqa: E402,F401
from sprintboard.models import sprint as _sprint  # noqa: E402,F401
from sprintboard.models import user as _user  # noqa: E402,F401


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create an organization and manage its members.")
    p.add_argument("org_id", help="Organization id as issued by the identity provider (e.g. 'org_acme').")
    p.add_argument("name", help="Display name of the organization.")
    p.add_argument("slug", help="URL slug, unique across organizations.")
    p.add_argument("--admin", nargs="*", default=[], metavar="USER_ID",
                   help="User ids to add (or promote) as organization admins.")
    p.add_argument("--member", nargs="*", default=[], metavar="USER_ID",
                   help="User ids to add (or demote) as regular members.")
    p.add_argument("--remove", nargs="*", default=[], metavar="USER_ID",
                   help="User ids to remove from the organization.")
    return p.parse_args(argv)


def seed(db, args: argparse.Namespace) -> dict:
    organization = get_organization(db, args.org_id)
    status = "exists"
    if organization is None:
        organization = create_organization(db, {"id": args.org_id, "name": args.name, "slug": args.slug})
        status = "created"

    for user_id in args.admin:
        set_membership(db, organization.id, user_id, ROLE_ADMIN)
    for user_id in args.member:
        set_membership(db, organization.id, user_id, ROLE_MEMBER)
    for user_id in args.remove:
        remove_membership(db, organization.id, user_id)

    return {
        "status": status,
        "organization": {"id": organization.id, "name": organization.name, "slug": organization.slug},
        "members": [
            {"user_id": m.user_external_id, "role": m.role} for m in list_memberships(db, organization.id)
        ],
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    Base.metadata.create_all(bind=engine)
    run_migrations(engine)

    db = SessionLocal()
    try:
        result = seed(db, args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
