#!/usr/bin/env python3
"""
Provision an admin account out of band (there is no HTTP bootstrap route).

Usage: python scripts/create_admin.py EMAIL PASSWORD [NAME]

If the email already belongs to a user, that user is promoted to admin
instead; the forced password reset that comes with a role change applies.
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from crowdfund.models.user import get_user_by_email, set_role
from crowdfund.schemas import CreateAdminRequest
from crowdfund.services.user_service import create_admin
from crowdfund.utils.db import transaction


def main():
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("email")
    ap.add_argument("password")
    ap.add_argument("name", nargs="?", default="Administrator")
    args = ap.parse_args()

    try:
        req = CreateAdminRequest(email=args.email, password=args.password, name=args.name)
    except ValidationError as e:
        for err in e.errors():
            print(f"invalid {'.'.join(map(str, err['loc']))}: {err['msg']}")
        sys.exit(2)

    existing = get_user_by_email(req.email)
    if existing:
        if existing["role"] == "admin":
            print(f"{req.email} is already an admin ({existing['id']})")
            return
        with transaction() as cur:
            set_role(cur, existing["id"], "admin")
        print(f"Promoted {req.email} to admin; they must reset their password.")
        return

    resp = create_admin(req)
    print(f"{resp['message']}: {resp['user']['email']} ({resp['user']['id']})")


if __name__ == "__main__":
    main()
